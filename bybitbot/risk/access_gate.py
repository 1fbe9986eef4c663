from loguru import logger


class AccessGate:
    """Single-operator allow list. Ids are compared as strings."""

    def __init__(self, allowed_user_id: str):
        self.allowed_user_id = str(allowed_user_id).strip()

    def authorize(self, requester_id) -> bool:
        rid = "" if requester_id is None else str(requester_id).strip()
        if self.allowed_user_id and rid == self.allowed_user_id:
            return True
        logger.warning("Unauthorized access attempt: ID {}", rid or "<unknown>")
        return False
