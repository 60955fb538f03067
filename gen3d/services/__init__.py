"""Services package"""

from gen3d.services.encoder import ImageEncoder, get_image_encoder
from gen3d.services.generation_client import CancelToken, GenerationClient
from gen3d.services.proxy import ReplicateProxy
from gen3d.services.session_store import SessionStore, get_session_store
from gen3d.services.sessions import SessionManager, get_session_manager
from gen3d.services.viewer import ModelViewer

__all__ = [
    "ImageEncoder",
    "get_image_encoder",
    "CancelToken",
    "GenerationClient",
    "ReplicateProxy",
    "SessionStore",
    "get_session_store",
    "SessionManager",
    "get_session_manager",
    "ModelViewer",
]
