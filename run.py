#!/usr/bin/env python3
"""
Run script for the User Service API.
Loads a local .env file, then launches the FastAPI app with uvicorn.
"""
import sys
import traceback

import uvicorn
from dotenv import load_dotenv

if __name__ == "__main__":
    # Settings are read from the environment at import time
    load_dotenv()
    try:
        print("Starting User Service API server...")
        print("Access the API at http://localhost:8000")
        print("API documentation at http://localhost:8000/docs")

        uvicorn.run(
            "userservice.main:app",
            host="0.0.0.0",
            port=8000,
            reload=True,
            log_level="info"
        )
    except Exception as e:
        print(f"Error starting server: {e}")
        traceback.print_exc()
        sys.exit(1)
