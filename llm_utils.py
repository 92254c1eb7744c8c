import google.genai as genai
from dotenv import load_dotenv
import os
import threading

load_dotenv()

MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-2.5-flash")

_client = None
_client_lock = threading.Lock()


class ModelWrapper:
    def __init__(self, client, model_name):
        self.client = client
        self.model_name = model_name

    def generate_content(self, contents):
        return self.client.models.generate_content(
            model=self.model_name,
            contents=contents
        )


def get_client():
    global _client
    with _client_lock:
        if _client is None:
            api_key = os.getenv("GEMINI_API_KEY")
            if not api_key:
                raise ValueError("GEMINI_API_KEY is not set. Please check your .env file or environment variables.")
            _client = genai.Client(api_key=api_key)
    return _client


def get_model():
    return ModelWrapper(get_client(), MODEL_NAME)
