# python
"""
dropshare/handlers/request_update.py
Handler for REQUEST_UPDATE: push the current snapshot to the requesting client only.
"""


async def run(service, session, data):
    if session.subscriber is None:
        return False
    return await service.push_to(session.subscriber)
