import uvicorn

from freemium.core.app_factory import create_app

app = create_app()


if __name__ == "__main__":
    # Logging is already configured by create_app
    uvicorn.run(app, host="0.0.0.0", port=8000, log_config=None)
