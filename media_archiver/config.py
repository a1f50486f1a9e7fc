"""
Configuration constants for the media archiver.
"""

# --- File Type Definitions ---
# Extensions are stored lowercase and without the leading dot
VIDEO_EXTS = {'mov', 'mp4'}
PICTURE_EXTS = {'heic', 'jpg', 'jpeg', 'png'}

# Extension to Kind Mapping
EXT_TO_KIND = {}
for ext in VIDEO_EXTS: EXT_TO_KIND[ext] = 'video'
for ext in PICTURE_EXTS: EXT_TO_KIND[ext] = 'picture'

# --- Metadata Parsing ---
# exifread tag names
CAPTURE_TAG = 'EXIF DateTimeOriginal'
SUBSEC_TAG = 'EXIF SubSecTimeOriginal'
OFFSET_TAG = 'EXIF OffsetTimeOriginal'

# Pillow tag ids (Exif sub-IFD)
PIL_EXIF_IFD = 0x8769
PIL_CAPTURE_TAG = 0x9003
PIL_OFFSET_TAG = 0x9011
PIL_SUBSEC_TAG = 0x9291

# Pillow cannot open HEIC without a plugin, exifread handles it natively
PIL_SKIP_EXTS = {'heic'}

# --- Scanning ---
# Metadata reads are I/O bound; threads overlap the waits
DEFAULT_WORKERS = 8

# --- Archives ---
YEAR_ARCHIVE_PATTERN = "{prefix}_{year}.tar"
YEAR_MONTH_ARCHIVE_PATTERN = "{prefix}_{year}_{month}.tar"
PARTIAL_ARCHIVE_SUFFIX = ".partial"
# Written archives get the usual rw-r--r-- instead of the 0600 of a temp file
ARCHIVE_FILE_MODE = 0o644
