"""Maps each SourceKind to the client that handles it."""

import requests

from modupdater.models.package import SourceKind
from modupdater.models.settings import Settings
from modupdater.utils.sources.base import UpdateClient
from modupdater.utils.sources.github import GitHubClient
from modupdater.utils.sources.nexus import NexusClient

CLIENT_CLASSES: dict[SourceKind, type[UpdateClient]] = {
    client.kind: client for client in (GitHubClient, NexusClient)
}


def create_clients(
    session: requests.Session, settings: Settings
) -> dict[SourceKind, UpdateClient]:
    return {
        kind: client_class(session, settings)
        for kind, client_class in CLIENT_CLASSES.items()
    }
