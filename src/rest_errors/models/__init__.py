from .error_response import CommonError, CommonErrorResponse
from .request_info import RequestInfo

__all__ = ["CommonError", "CommonErrorResponse", "RequestInfo"]
