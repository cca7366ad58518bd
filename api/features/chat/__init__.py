"""Chat feature: completion proxy in front of the OpenAI chat API."""
