RECORD_ID_TAG = "001"
RECORD_ID_WIDTH = 9
RECORD_ID_MIN_EXCLUSIVE = 0
RECORD_ID_MAX_EXCLUSIVE = 100_000_000

DEFAULT_CHUNK_SIZE = 5
BATCH_SLEEP_SECONDS = 20 * 60

VALIDATED_FILE_SUFFIX = "_validated"
ORIGINAL_FILE_SUFFIX = "_original"

XML_SUFFIXES = {".xml"}
ISO2709_SUFFIXES = {".mrc", ".marc"}
ALEPH_SEQUENTIAL_SUFFIXES = {".seq"}
