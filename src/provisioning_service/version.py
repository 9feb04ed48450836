__version__ = "0.1.0"

CLIENT_NAME = "provisioning-service-client"
