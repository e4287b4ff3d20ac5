"""Minimal demonstration of the dispatch pipeline."""

import asyncio

from assistant_core.api.service import handle_chat_request

if __name__ == "__main__":
    question = "What price should I set for a hand-painted Madhubani wall hanging?"
    status, body = asyncio.run(handle_chat_request({"message": question}))
    print("User:", question)
    print("Status:", status)
    print("Assistant:", body.get("content") or body.get("error"))
    print("Route:", body.get("type"), body.get("tool") or "", f"({body.get('intent')}, {body.get('confidence')})")
