"""
relaykit - provision a host to relay RTSP cameras to RTMP with Docker Compose.

Installs Docker and the Compose plugin, optionally waits for the network,
activates the Docker daemon, brings up the containers declared in an
operator-supplied ``docker-compose.yml``, and reports what is running.
"""

__version__ = "0.1.0"
