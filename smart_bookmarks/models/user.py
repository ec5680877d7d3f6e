from pydantic import BaseModel, ConfigDict, EmailStr


class User(BaseModel):
    """Signed-in user identity supplied by the identity provider.

    Attributes:
        id: Identity provider subject, also the `user_id` on every owned row
        email: The user's email address
    """

    model_config = ConfigDict(frozen=True)

    id: str
    email: EmailStr
