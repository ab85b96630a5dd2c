class DefaultConfig:
    # Frontend allowed to call the API
    CORS_ORIGINS = ["http://localhost:3000"]
    PORT = 5000
    DEBUG = False
    LOG_LEVEL = "INFO"

    # Right-hand side names treated as SFG nodes when building from equations
    NODE_PATTERN = r"^(x|V_?n)\w*$"

    # Loop and path search is exponential in the worst case
    MAX_GRAPH_NODES = 30


class TestingConfig(DefaultConfig):
    TESTING = True
    LOG_LEVEL = "DEBUG"
