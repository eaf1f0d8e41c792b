from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Deployment settings read from the environment or a local .env file."""

    # Attachment storage: "local" writes under LOCAL_UPLOAD_ROOT, "object" uses an S3 bucket
    STORAGE_BACKEND: str = "local"
    LOCAL_UPLOAD_ROOT: str = "/data/uploads"

    OBJECT_STORAGE_ENDPOINT: str | None = None
    OBJECT_STORAGE_REGION: str | None = None
    OBJECT_STORAGE_BUCKET: str | None = None
    OBJECT_STORAGE_PUBLIC_BASE_URL: str | None = None
    # seconds a redirected /uploads/{key} link stays valid
    UPLOAD_URL_EXPIRES: int = 600

    # create_all on startup (dev / demo only, production runs alembic)
    AUTO_DB_BOOTSTRAP: bool = False

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
