"""FastAPI adapter – pagination dependency and exception mapper."""
from pageable.adapters.fastapi.deps import Paginate, PaginateDep, raw_query_from_request
from pageable.adapters.fastapi.exception_mapper import FastAPIExceptionMapper

__all__ = ["FastAPIExceptionMapper", "Paginate", "PaginateDep", "raw_query_from_request"]
