"""HTTP method names accepted by the registry API."""

GET = "GET"
PUT = "PUT"
PATCH = "PATCH"
DELETE = "DELETE"
POST = "POST"
HEAD = "HEAD"
OPTIONS = "OPTIONS"
