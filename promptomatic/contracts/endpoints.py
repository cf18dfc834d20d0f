class OpenAIEndpoints:
    CHAT_COMPLETIONS = "/v1/chat/completions"

class AnthropicEndpoints:
    MESSAGES = "/v1/messages"

class InterviewEndpoints:
    CHAT = "/api/chat"
    INTERVIEWS = "/api/interviews"
    INTERVIEW = "/api/interviews/{session_id}"
    MESSAGES = "/api/interviews/{session_id}/messages"
    RESET = "/api/interviews/{session_id}/reset"
    HEALTH = "/health"
