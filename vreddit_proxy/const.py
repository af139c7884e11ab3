import re

MEDIA_ID_PATTERN = re.compile(r"^[a-z0-9]+$")

MANIFEST_FILENAME = "DASHPlaylist.mpd"

MANIFEST_LIST_TAGS = ("Period", "AdaptationSet", "Representation", "BaseURL")

OUTPUT_MEDIA_TYPE = "video/mp4"

BAD_URL_MESSAGE = "bad url"
INTERNAL_ERROR_MESSAGE = "wtf"
