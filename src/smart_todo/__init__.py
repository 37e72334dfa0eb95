"""
Smart Todo backend package.

Todo CRUD over a pluggable repository plus an instruction endpoint that lets
an AI interpreter drive the list. The FastAPI app lives in `smart_todo.main`.
"""
