"""Application entrypoint.

Run with:
    uvicorn main:server_app --app-dir app
"""

from server import server

server_app = server.handler
