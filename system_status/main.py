from system_status.application import create_app

# Entry point for `uvicorn system_status.main:app`; settings come from the environment
app = create_app()
