from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Environment settings for the MMC driver.
    """

    model_config = SettingsConfigDict(env_prefix="MMC_")

    solver_command: str = ""
