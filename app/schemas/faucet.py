from typing import List

from pydantic import Field

from app.schemas.my_base_model import CustomBaseModel


class TokenInfo(CustomBaseModel):
    """ERC-20 metadata of the faucet token
    Example:
    {
        "name": "Faucet Token",
        "symbol": "FTK",
        "decimals": 18,
        "totalSupply": "1000000.0"
    }
    """

    name: str = ""
    symbol: str = ""
    decimals: int = 18
    total_supply: str = Field("0.0", alias="totalSupply")

    @classmethod
    def from_record(cls, record: dict):
        data = dict(record)
        if "totalSupply" in data:
            data["total_supply"] = data.pop("totalSupply")
        return super().from_record(data)


class ClaimResponse(CustomBaseModel):
    success: bool = True
    tx_hash: str = Field("", alias="txHash")
    message: str = ""
    address: str = ""


class FaucetStatusResponse(CustomBaseModel):
    """Faucet state for one address, only the owner may read it"""

    address: str = ""
    has_claimed: bool = Field(False, alias="hasClaimed")
    balance: str = "0.0"
    faucet_amount: str = Field("0.0", alias="faucetAmount")
    total_users: int = Field(0, alias="totalUsers")
    users: List[str] = []
    token_info: TokenInfo = Field(default_factory=TokenInfo, alias="tokenInfo")


class FaucetInfoResponse(CustomBaseModel):
    faucet_amount: str = Field("0.0", alias="faucetAmount")
    token_info: TokenInfo = Field(default_factory=TokenInfo, alias="tokenInfo")
    total_users: int = Field(0, alias="totalUsers")
    contract_address: str = Field("", alias="contractAddress")
    chain_id: int = Field(0, alias="chainId")
    network_name: str = Field("", alias="networkName")


class Pagination(CustomBaseModel):
    page: int = 1
    limit: int = 10
    total: int = 0
    total_pages: int = Field(0, alias="totalPages")


class FaucetUsersResponse(CustomBaseModel):
    users: List[str] = []
    pagination: Pagination = Field(default_factory=Pagination)
