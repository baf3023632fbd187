API_VERSION_HEADER = "X-MatchMap-Version"

# Map request limits
MAX_POINTS_PER_REQUEST = 5000
MAX_MARKERS_PER_REQUEST = 5000
MAX_CONTAINER_PIXELS = 8192

# Camera limits accepted by the map endpoints
MIN_ZOOM = 0.0
MAX_ZOOM = 22.0
