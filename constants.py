"""
Static Discord constants

Values fixed by the Discord platform itself. Tunables live in config.py.
"""

# Discord snowflake epoch (2015-01-01T00:00:00Z) in milliseconds
DISCORD_EPOCH_MS = 1420070400000

# Media CDN
CDN_BASE_URL = "https://cdn.discordapp.com"
DEFAULT_AVATAR_COUNT = 6      # embed/avatars/0.png .. 5.png
LEGACY_AVATAR_COUNT = 5       # users with a non-zero discriminator
DEFAULT_IMAGE_SIZE = 64
IMAGE_SIZES = (16, 20, 22, 24, 28, 32, 40, 44, 48, 56, 60, 64, 80, 96, 100,
               128, 160, 240, 256, 300, 320, 480, 512, 600, 640, 1024, 1280, 1536, 2048, 3072, 4096)

# Message limits
MAX_MESSAGE_LENGTH = 2000
