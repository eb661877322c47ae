from .request import Client
