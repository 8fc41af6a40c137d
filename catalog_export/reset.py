import logging

logger = logging.getLogger(__name__)


class CollectionResetCoordinator:
    def __init__(self, client, session, endpoint):
        self.client = client
        self.session = session
        self.endpoint = endpoint

    def reset_before_full_export(self) -> bool:
        """Empty the remote collection. False means the full export must not start."""
        response = self.client.reset_collection(self.session, self.endpoint.path, self.endpoint.method)
        if not response.ok:
            logger.error("Collection reset via %s failed: %s", self.endpoint.path, response.message)
            return False
        logger.info("Remote collection reset via %s", self.endpoint.path)
        return True
