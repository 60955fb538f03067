"""Gen3D: image-to-3D generation client, proxy and session API"""

__version__ = "1.0.0"
