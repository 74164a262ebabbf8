import json
import re
import requests
from typing import List, Dict, Any
from app.core.config import settings
from app.core.exceptions import AIError, AIKillSwitchError
import logging
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from app.core.logging import request_id_var

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"

class AIOrchestrator:
    @staticmethod
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        retry=retry_if_exception_type((requests.exceptions.RequestException, AIError)),
        reraise=True
    )
    def _do_call(
        messages: List[Dict[str, str]],
        model_name: str,
        temperature: float = 0.7,
        json_output: bool = True
    ) -> str:
        """Internal method to perform the actual API call with retries."""
        logger.info(f"Calling AI Model: {model_name}")

        try:
            response = requests.post(
                url=OPENROUTER_URL,
                headers={
                    "Authorization": f"Bearer {settings.ai.openrouter_api_key}",
                    "Content-Type": "application/json",
                    "HTTP-Referer": "http://localhost:3000", # Required by OpenRouter
                    "X-Request-ID": request_id_var.get(),
                },
                data=json.dumps({
                    "model": model_name,
                    "messages": messages,
                    "temperature": temperature
                }),
                timeout=30
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]

            if json_output:
                # Basic JSON extraction if model returns text around it
                json_match = re.search(r'\{.*\}', content, re.DOTALL)
                if json_match:
                    return json_match.group()

            return content

        except requests.exceptions.Timeout:
            logger.error("AI service timeout.")
            raise AIError("AI service reached timeout limit.")
        except requests.exceptions.HTTPError as e:
            logger.error(f"AI service HTTP error: {e}")
            raise AIError(f"AI service returned error: {e.response.status_code}")
        except (KeyError, IndexError, ValueError) as e:
            logger.error(f"Unexpected AI response shape: {e}")
            raise AIError("AI service returned an unexpected response.")

    @classmethod
    def call_model(
        cls,
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        json_output: bool = True,
    ) -> str:
        """
        Centralized AI model caller with kill-switch, retries and fallback model.
        """
        if settings.ai.kill_switch:
            logger.warning("AI Kill-switch is active. Blocking request.")
            raise AIKillSwitchError()

        if not settings.ai.openrouter_api_key:
            logger.error("OpenRouter API Key missing.")
            raise AIError("AI service configuration error.")

        try:
            return cls._do_call(messages, settings.ai.model_name, temperature, json_output)
        except Exception as e:
            logger.warning(f"Primary model {settings.ai.model_name} failed: {e}. Attempting fallback.")
            try:
                return cls._do_call(messages, settings.ai_fallback_model, temperature, json_output)
            except Exception as fe:
                logger.error(f"Fallback model {settings.ai_fallback_model} also failed: {fe}")
                raise AIError(f"AI service completely unavailable (Primary: {e}, Fallback: {fe})")

    @classmethod
    def analyze_text(
        cls,
        system_prompt: str,
        user_content: str,
        temperature: float = 0.5,
    ) -> Dict[str, Any]:
        """ Helper for common analysis tasks that expect JSON back. """
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content}
        ]
        response_text = cls.call_model(messages, temperature=temperature, json_output=True)
        try:
            return json.loads(response_text)
        except json.JSONDecodeError:
            logger.error(f"Failed to decode AI JSON response: {response_text}")
            raise AIError("Failed to parse AI response.")
