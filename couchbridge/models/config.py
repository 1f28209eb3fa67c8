from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    A single environment setting a client needs before it can talk to its backend.

    Attributes:
        env_key (str): Key of the setting without the client prefix (e.g. "BASE_URL").
        val_type (str): Expected value type: "string" or "number".
        default (str | int | float | None): Fallback value. None marks the setting as required.
    """

    env_key: str
    val_type: str = "string"
    default: str | int | float | None = None
