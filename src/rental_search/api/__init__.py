from rental_search.api.routes import router

__all__ = ["router"]
