import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass
class TranslatorSettings:
    """Translator settings with environment variable support."""
    config_dir: str = field(default_factory=lambda: os.getenv("CONFIG_DIR", "./config"))
    template_dir: str = field(default_factory=lambda: os.getenv("TEMPLATE_DIR", "./config/templates"))
    plugin_dir: str = field(default_factory=lambda: os.getenv("PLUGIN_DIR", "./config/plugins"))
    wsdl_dir: str = field(default_factory=lambda: os.getenv("WSDL_DIR", "./wsdl"))

    # Total transport timeout for backend requests, in seconds
    request_timeout: float = field(default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT", "30")))

    # Signing
    domain: str = field(default_factory=lambda: os.getenv("TRANSLATOR_DOMAIN", "localhost"))
    private_key_path: Optional[str] = field(default_factory=lambda: os.getenv("PRIVATE_KEY_PATH"))
    public_key_path: Optional[str] = field(default_factory=lambda: os.getenv("PUBLIC_KEY_PATH"))

    log_file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))
