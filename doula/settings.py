from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="DOULA_", extra="ignore")

    pix_key: str = ""
    pix_key_type: str = "random"
    pix_beneficiary_name: str = ""
    pix_city: str = "Sao Paulo"

    qrcode_output_dir: str = "./qrcodes"

    log_level: str = "INFO"
    log_json: bool = False


settings = Settings()
