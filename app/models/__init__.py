from app.models.client import Client
from app.models.professional import Professional

__all__ = [
    "Client",
    "Professional",
]
