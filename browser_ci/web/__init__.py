# Web Layer
# =========
# The static HTTPS server browsers load the test suite from:
# - app.py: FastAPI app (static files, listings, isolation headers)
# - server.py: uvicorn on a background thread with a self-signed certificate
