from .errors import VendorErrorBody, VendorErrorEnvelope
from .openai import (
    OpenAIMessage,
    OpenAIChatRequest,
    OpenAIFunctionCall,
    OpenAIToolCall,
    OpenAIResponseMessage,
    OpenAIChoice,
    OpenAIChatResponse,
)
from .anthropic import (
    AnthropicMessage,
    AnthropicMessagesRequest,
    AnthropicContentBlock,
    AnthropicTextBlock,
    AnthropicToolUseBlock,
    AnthropicMessagesResponse,
)
from .endpoints import OpenAIEndpoints, AnthropicEndpoints, InterviewEndpoints
