from pydantic import BaseModel, Field

from app.schemas.my_base_model import CustomBaseModel


class MessageRequest(BaseModel):
    """Request model for challenge generation - input validation"""

    address: str = Field("", description="Wallet address (0x + 40 hex characters)")


class MessageResponse(CustomBaseModel):
    """Response model for challenge generation - output"""

    message: str = ""
    nonce: str = ""


class SignInRequest(BaseModel):
    """Request model for sign-in - input validation"""

    signature: str = Field("", description="personal_sign signature of the challenge message")
    nonce: str = Field("", description="Nonce returned with the challenge")


class SignInResponse(CustomBaseModel):
    """Response model for sign-in - output"""

    token: str = ""
    address: str = ""
    success: bool = True


class VerifyResponse(CustomBaseModel):
    """Response model for token verification - output"""

    valid: bool = True
    address: str = ""
    chain_id: int = Field(0, alias="chainId")
