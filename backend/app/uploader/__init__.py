"""
Client-side upload pipeline.

Sends local files to a gallery through the signing service:
- orchestrator: batch state machine and worker pool
- signing_client: HTTP calls to the signing service and the object store
- progress: progress sinks
- media_remover: deleting gallery media
"""
