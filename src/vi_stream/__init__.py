"""
vi-stream
=========

Animated text stream for terminal clients.

`curl` the service and it plays a looping, colorized text animation in
your terminal; browsers are redirected to the project page.

Components:
    - frames: Frame asset loading (compute-once) and the flip transform
    - stream: Color cycling, terminal protocol, sinks and the AnimationLoop
    - routing: Stream-or-redirect decision and query flag parsing
    - main: FastAPI application

Example:
    uvicorn vi_stream.main:app --port 8000
    curl localhost:8000
    curl "localhost:8000/?flip=true"
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
