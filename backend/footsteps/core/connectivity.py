"""
Connectivity probe gating every remote model call
"""
from datetime import datetime, timezone
from typing import Optional

from footsteps.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)


class ConnectivityProbe:
    """
    Holds the current online/offline signal.

    Read synchronously at call time by the retry wrapper. Clients report
    their platform signal through the connectivity route; the wrapper never
    changes it.
    """

    def __init__(self, online: bool = True):
        self._online = online
        self._changed_at: Optional[datetime] = None

    def is_online(self) -> bool:
        return self._online

    @property
    def changed_at(self) -> Optional[datetime]:
        return self._changed_at

    def set_online(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        self._changed_at = datetime.now(timezone.utc)
        logger.info(
            "Connectivity changed",
            extra={"online": online}
        )

    def mark_online(self) -> None:
        self.set_online(True)

    def mark_offline(self) -> None:
        self.set_online(False)
