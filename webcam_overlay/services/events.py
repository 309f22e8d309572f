# Predefined event types
class CameraEvents:
    CONNECTED = "camera.connected"
    DISCONNECTED = "camera.disconnected"
    ERROR = "camera.error"
    CAMERAS_LISTED = "camera.cameras_listed"


class OverlayEvents:
    """Overlay configuration and image events"""

    # Requests published by the parameter source (UI widgets)
    OPACITY_REQUESTED = "overlay.opacity_requested"
    SCALE_REQUESTED = "overlay.scale_requested"
    ZOOM_IN_REQUESTED = "overlay.zoom_in_requested"
    ZOOM_OUT_REQUESTED = "overlay.zoom_out_requested"
    ROTATION_REQUESTED = "overlay.rotation_requested"
    ROTATE_BY_REQUESTED = "overlay.rotate_by_requested"
    BLEND_MODE_REQUESTED = "overlay.blend_mode_requested"
    IMAGE_REQUESTED = "overlay.image_requested"

    # Notifications
    CONFIG_CHANGED = "overlay.config_changed"
    IMAGE_LOADED = "overlay.image_loaded"
    IMAGE_LOAD_FAILED = "overlay.image_load_failed"
    IMAGE_CLEARED = "overlay.image_cleared"


class ApplicationEvents:
    STARTUP = "app.startup"
    SHUTDOWN = "app.shutdown"
    ERROR = "app.error"
