class Endpoint(str):
    """A request path relative to the configured API url.

    Always starts with a single slash and never ends with one, so it can be
    appended to a base url that has had its trailing slashes stripped.
    """

    def __new__(cls, endpoint: str) -> "Endpoint":
        return super().__new__(cls, "/" + endpoint.strip("/"))
