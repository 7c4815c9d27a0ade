import os

from dotenv import load_dotenv

# Load .env before the app reads its settings
load_dotenv()

from app.main import app  # noqa: E402

if __name__ == "__main__":
    import uvicorn

    workers = int(os.getenv("UVICORN_WORKERS", "1"))
    keepalive = int(os.getenv("UVICORN_KEEPALIVE", "65"))
    uvicorn.run(
        "app.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("UVICORN_RELOAD", "0") == "1",
        workers=workers,
        timeout_keep_alive=keepalive,
    )
