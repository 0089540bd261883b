import logging
import time
from typing import Any, Dict, List, Optional

import requests

from ..models.product import TagOutcome, TagStatus
from ..utils.config import ConfigManager, VisionModelSettings
from ..utils.text_processing import TextProcessor
from .tag_classifier import TagClassifier

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """你是一位奢侈品与时尚专家，擅长从视觉角度准确、简洁地描述商品特征，以便于搜索引擎索引。

你的任务是根据商品名称和图片，生成最符合用户搜索习惯的特征标签。

核心要求（优先级从高到低）：
1. 核心品类识别：必须包含基础品类词（如：手提包、连衣裙、T恤、运动鞋、钱包、耳环、手链等）。
2. 简洁准确：标签以"短促、平实"为主，通常 2-4 个字；每个标签只表达一个概念，禁止把多个信息拼成一句话。
3. 视觉互补：优先输出图片里能看见但文本可能缺失的内容（颜色、材质外观、图案、轮廓、开合方式等）。
4. 氛围感词：2-3个，保留 1-2 个通用风格词（如：老钱风、静奢风、森系、多巴胺）。

数量与格式：
- 生成 12-16 个标签。
- 输出必须严格为 JSON 数组，例如：["标签1", "标签2", ...]。"""


class VisionTagger:
    """Generates search tags for one product by asking a vision-language model"""

    def __init__(
        self,
        settings: VisionModelSettings,
        timeout: float = 60,
        temperature: float = 0.3,
        max_tokens: int = 500,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        classifier: Optional[TagClassifier] = None,
    ):
        self.settings = settings
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.retry_attempts = max(1, retry_attempts)
        self.retry_delay = retry_delay
        self.classifier = classifier or TagClassifier()
        self.text_processor = TextProcessor()

        if not settings.is_configured:
            logger.warning(
                "Vision model API key not configured; every product will be "
                f"marked {TagStatus.API_NOT_CONFIGURED.value}"
            )

    @classmethod
    def from_config(cls, config: Optional[ConfigManager] = None) -> "VisionTagger":
        config = config or ConfigManager()
        return cls(
            settings=config.get_vision_settings(),
            timeout=config.get("vlm.timeout_seconds", 60),
            temperature=config.get("vlm.temperature", 0.3),
            max_tokens=config.get("vlm.max_tokens", 500),
            retry_attempts=config.get("processing.retry_attempts", 3),
            retry_delay=config.get("processing.retry_delay_seconds", 1.0),
        )

    @staticmethod
    def normalize_image_url(image_url: str) -> str:
        """Strip query-string image-processing directives to get the source image"""
        return image_url.split("?", 1)[0]

    def tag(self, product_name: str, image_url: str) -> TagOutcome:
        """
        Tag a single product

        Never raises: configuration, input and network failures are
        reported through the returned outcome's status.
        """
        if not self.settings.is_configured:
            return TagOutcome.failure(TagStatus.API_NOT_CONFIGURED)

        if not image_url.startswith("http"):
            return TagOutcome.failure(TagStatus.NO_IMAGE)

        clean_url = self.normalize_image_url(image_url)

        for attempt in range(self.retry_attempts):
            try:
                raw_tags = self._request_tags(product_name, clean_url)
                return TagOutcome.success(self.classifier.process_tags(raw_tags))
            except Exception as e:
                logger.warning(f"Attempt {attempt + 1} failed for {product_name}: {e}")
                if attempt < self.retry_attempts - 1:
                    time.sleep(self.retry_delay)

        logger.error(
            f"Tagging failed for {product_name} after {self.retry_attempts} attempts"
        )
        return TagOutcome.failure(TagStatus.FAILED)

    def build_payload(self, product_name: str, image_url: str) -> Dict[str, Any]:
        """Build the chat-completion request body"""
        return {
            "model": self.settings.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": f"商品名称: {product_name}"},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                },
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    def _request_tags(self, product_name: str, image_url: str) -> List[Any]:
        """Issue one model call and parse the raw tag array from its answer"""
        response = requests.post(
            f"{self.settings.base_url.rstrip('/')}/chat/completions",
            headers={
                "Authorization": f"Bearer {self.settings.api_key}",
                "Content-Type": "application/json",
            },
            json=self.build_payload(product_name, image_url),
            timeout=self.timeout,
        )
        response.raise_for_status()

        data = response.json()
        choices = data.get("choices") or []
        message = choices[0].get("message", {}) if choices else {}
        content = (message.get("content") or "").strip()

        return self.text_processor.parse_tag_response(content)
