"""Builds the Hertz ``makeReservation`` search payload."""

from __future__ import annotations

from ..domain.models import DateCombination, SearchConfiguration
from ..domain.ports.pricing_api import RequestBody
from ..domain.services.date_combinations import format_date


class HertzRequestBuilder:
    """Maps a configuration and a combination to the reservation search body."""

    def build(self, config: SearchConfiguration, combination: DateCombination) -> RequestBody:
        params = config.reservation
        return {
            "metadata": {"isReviewModify": False},
            "itinerary": {
                "age": params.age,
                "pickupLocationCode": params.pickup_location,
                "pickupLocationName": params.pickup_location_name,
                "returnLocationCode": params.return_location,
                "returnLocationName": params.return_location_name,
                "pickupDate": format_date(combination.pickup_date),
                "pickupTime": params.pickup_time,
                "militaryClock": 1,
                "returnDate": format_date(combination.return_date),
                "returnTime": params.return_time,
                "vehicleType": "",
                "cdp": params.cdp,
                "pc": params.promo_code,
                "rq": params.rq,
                "cv": "",
                "it": "",
                "useRewardPoints": "N",
                "keepOriginalRateQuote": "",
                "fromLocationSearch": False,
                "corporateRate": "",
                "lastName": "",
                "memberNumber": "",
                "affiliateCallCount": 0,
                "affiliateMemberID": "",
                "affiliateMemberJoin": "",
                "companyId": "",
                "partnerCDPVerified": 0,
                "corpRate": "",
                "useProfileCDP": "",
                "officialTravel": "off",
            },
        }
