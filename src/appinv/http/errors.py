class RequestError(Exception):
    def __init__(self, status: int, url: str, message: str = "", body_snippet: str = ""):
        super().__init__(message or f"HTTP {status} for {url}")
        self.status = status
        self.url = url
        self.body_snippet = body_snippet

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base} (status={self.status}, url={self.url})"

class UnauthorizedError(RequestError): pass        # 401
class ForbiddenError(RequestError): pass           # 403
class NotFoundError(RequestError): pass            # 404
class ThrottleError(RequestError): pass            # 429
class ServerError(RequestError): pass              # 5xx
class TransportError(RequestError): pass           # request/timeout
