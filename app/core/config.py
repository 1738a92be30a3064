from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv(override=True)

class Settings(BaseSettings):
    PROJECT_NAME: str = "FaucetToken"
    # Application settings
    PORT: int | None = 3001
    HOST: str | None = "127.0.0.1"
    VERSION: str | None = "1.0.0"
    DOC_PASSWORD: str | None = None
    LOG_LEVEL: str = "INFO"

    # SSL settings
    SSL_KEY: str | None = None
    SSL_CERT: str | None = None

    # Login configuration
    ENCODE_KEY: str | None = None
    ENCODE_ALGORITHM: str | None = "HS256"
    ACCESS_TOKEN_EXPIRE_SECONDS: int | None = 24 * 60 * 60 # 24 hours
    NONCE_EXPIRY_SECONDS: int | None = 600 # 10 minutes
    NONCE_SWEEP_INTERVAL_SECONDS: int | None = 300 # 5 minutes

    # Sign-In With Ethereum message fields
    SIWE_DOMAIN: str = "localhost:3001"
    SIWE_URI: str = "http://localhost:5173"
    SIWE_STATEMENT: str = "Sign in to Faucet Token App"
    SIWE_VERSION: str = "1"

    # Chain / faucet contract
    CHAIN_ID: int = 11155111
    NETWORK_NAME: str = "Sepolia"
    RPC_URL: str | None = None
    CONTRACT_ADDRESS: str | None = None
    PRIVATE_KEY: str | None = None

    # Debug settings
    DEBUG: bool = False

    class Config:
        env_file = ".env"

# Instantiate the settings
settings = Settings()
