from .gemini import GeminiProvider
from .gemini_sdk import GeminiSDKProvider

__all__ = ["GeminiProvider", "GeminiSDKProvider"]
