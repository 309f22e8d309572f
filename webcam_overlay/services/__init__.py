"""
Headless services: event broker, logging, camera, image library, overlay
configuration, compositing engines and the render loop
"""
