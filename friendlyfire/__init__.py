"""friendlyfire: staggered rolling restarts of docker compose services.

Periodically stops and starts one container at a time per configured service
so long-running processes get a fresh start without the whole service going
down. Two loops share one schedule:
 - discovery keeps service -> container lists in sync with docker
 - the rollover worker restarts the head container of each due service
"""
