"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    EXIT_UNRESOLVED = 3


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    BALA_EXTENSION = ".bala"
    BALA_DIR_NAME = "bala"
    PACKAGE_JSON = "package.json"
    DEPENDENCY_GRAPH_JSON = "dependency-graph.json"
    MAVEN_METADATA_XML = "maven-metadata.xml"
    PLATFORM = "platform"
    PLATFORM_PREFERENCE = ("java21", "java17", "java11", "any")
    TEMP_DIR_PREFIX = "pkgresolve-"
    DEFAULT_REPOSITORY_ID = "default"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "PKGRESOLVE_LOG_LEVEL"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    DOWNLOAD_CHUNK_SIZE = 64 * 1024
    USER_AGENT = "pkgresolve/0.1"
