from drive_api.application import create_app

# served with `uvicorn drive_api.main:app`
app = create_app()
