"""threadwise - Discord reply-thread bot with streamed LLM answers."""
