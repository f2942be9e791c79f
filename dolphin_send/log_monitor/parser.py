"""Log parser for Minecraft server logs."""

from typing import Iterable, List, Optional

from ..events.base import MinecraftMessage
from ..logger import logger
from .uuid_cache import UuidCache

DEFAULT_DEATH_KEYWORDS = [
    " shot",
    " pricked",
    " walked into a cactus",
    " roasted",
    " drowned",
    " kinetic",
    " blew up",
    " blown up",
    " killed",
    " hit the ground",
    " fell",
    " doomed",
    " squashed",
    " magic",
    " flames",
    " burned",
    " walked into fire",
    " burnt",
    " bang",
    " tried to swim in lava",
    " lightning",
    "floor was lava",
    "danger zone",
    " slain",
    " fireballed",
    " stung",
    " starved",
    " suffocated",
    " squished",
    " poked",
    " imapled",
    "didn't want to live",
    " withered",
    " pummeled",
    " died",
    " slain",
]

ADVANCEMENT_PHRASES = (
    "has made the advancement",
    "has completed the challenge",
    "has reached the goal",
)

# Logged on every start of a world whose dragon is dead; not a player death
DRAGON_KILLED_LINE = "Found that the dragon has been killed in this world already."

# Prepended to unsigned chat by 1.19+ servers
NOT_SECURE_TAG = "[Not Secure] "

PREFIX_DELIMITER = "]: "
MIN_LINE_LENGTH = 11

ADVANCEMENT_MARKER = ":partying_face:"
DEATH_MARKER = ":skull:"
SERVER_STARTED_CONTENT = ":white_check_mark: Server has started"
SERVER_STOPPING_CONTENT = ":x: Server is shutting down"


def trim_prefix(line: str) -> str:
    """Strip the ``[time] [thread/LEVEL]: `` prefix from a raw log line.

    Returns:
        The message part without trailing whitespace, or an empty string if
        the line does not look like a server log line
    """
    # Some server plugins log lines without the usual prefix
    if not line.startswith("[") or len(line) < MIN_LINE_LENGTH:
        return ""

    index = line.find(PREFIX_DELIMITER)
    if index == -1:
        return ""

    return line[index + len(PREFIX_DELIMITER) :].rstrip()


def is_advancement(line: str) -> bool:
    return any(phrase in line for phrase in ADVANCEMENT_PHRASES)


class LogParser:
    """Classifies Minecraft server log lines into messages.

    Rules are checked in a fixed order and the first match wins, since some
    phrases (e.g. villager deaths) would otherwise match later rules.
    """

    def __init__(
        self,
        custom_death_keywords: Optional[Iterable[str]] = None,
        uuid_cache: Optional[UuidCache] = None,
    ):
        """Initialize log parser.

        Args:
            custom_death_keywords: Extra death phrases appended to the defaults
            uuid_cache: Cache to use, a fresh one is created if omitted
        """
        self.death_keywords: List[str] = list(DEFAULT_DEATH_KEYWORDS)
        if custom_death_keywords:
            self.death_keywords.extend(custom_death_keywords)

        self.uuid_cache = uuid_cache if uuid_cache is not None else UuidCache()

    def get_uuid(self, name: str) -> Optional[str]:
        """Return the cached UUID for a player, None if not cached."""
        return self.uuid_cache.lookup(name)

    def parse_line(self, line: str) -> Optional[MinecraftMessage]:
        """Parse a raw log line and return a message if it is one we forward.

        Args:
            line: Log line as written by the server

        Returns:
            Parsed message or None if the line is ignored
        """
        line = trim_prefix(line)
        if not line:
            return None

        line = line.strip()
        line = line.removeprefix(NOT_SECURE_TAG)

        # Villager deaths would otherwise match the death keywords
        if line.startswith("Villager") and "died, message:" in line:
            return None

        if line.startswith("UUID of player"):
            self._remember_uuid(line)
            return None

        if line.startswith("<"):
            return self._parse_chat(line)

        if "joined the game" in line or "left the game" in line:
            if "left the game" in line:
                name = line.split()[0]
                self.uuid_cache.forget(name)
                logger.debug(f"Removed {name} from UUID cache")
            return MinecraftMessage.from_server(line)

        if is_advancement(line):
            return MinecraftMessage.from_server(f"{ADVANCEMENT_MARKER} {line}")

        if line.startswith("Done ("):
            return MinecraftMessage.from_server(SERVER_STARTED_CONTENT)

        if line.startswith("Stopping the server"):
            return MinecraftMessage.from_server(SERVER_STOPPING_CONTENT)

        if line != DRAGON_KILLED_LINE and self._is_death(line):
            return MinecraftMessage.from_server(f"{DEATH_MARKER} {line}")

        return None

    def _remember_uuid(self, line: str) -> None:
        # UUID of player <name> is <uuid>
        parts = line.split(" ")
        if len(parts) < 6:
            logger.warning(f"Failed to extract UUID from line: {line}")
            return

        name, uuid = parts[3], parts[5]
        self.uuid_cache.remember(name, uuid)
        logger.debug(f"Cached UUID for {name}: {uuid}")

    def _parse_chat(self, line: str) -> Optional[MinecraftMessage]:
        parts = line.split(" ", 1)
        if len(parts) < 2:
            logger.debug(f"Ignoring chat line without text: {line}")
            return None

        username = parts[0].removeprefix("<").removesuffix(">")
        return MinecraftMessage.from_player(
            username=username,
            content=parts[1],
            uuid=self.uuid_cache.get(username),
        )

    def _is_death(self, line: str) -> bool:
        for keyword in self.death_keywords:
            if keyword in line:
                return True
        return False
