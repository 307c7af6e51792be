#!/usr/bin/env python3
"""
Run script for the Memoria voice notes backend
"""
import uvicorn

from memoria.config.settings import settings
from memoria.main import app

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, reload=settings.debug)
