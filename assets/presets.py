"""Upload presets shared by the apps that store assets."""

PRODUCT_IMAGES_FOLDER = "products"
AVATARS_FOLDER = "avatars"

PRODUCT_IMAGE_OPTIONS = {}

# Avatars can be large camera pictures: scale them down on the provider side
# and allow up to five minutes per attempt, chunked in 6MB parts.
AVATAR_OPTIONS = {
    "width": 150,
    "crop": "scale",
    "quality": "auto",
    "fetch_format": "auto",
    "timeout": 300,
    "chunk_size": 6_000_000,
    "resource_type": "auto",
}

MANAGED_FOLDERS = (PRODUCT_IMAGES_FOLDER, AVATARS_FOLDER)
