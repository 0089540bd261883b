from enum import Enum
from typing import FrozenSet, List

from pydantic import BaseModel, ConfigDict


class ProductCategory(str, Enum):
    """Coarse product categories inferred from generated tags"""
    BAG = "bag"
    SHOE = "shoe"
    CLOTHING = "clothing"
    UNKNOWN = "unknown"


class CategoryMarkers(BaseModel):
    """Fixed tag vocabularies used to infer a category and filter attribute tags"""
    model_config = ConfigDict(frozen=True)

    clothing: FrozenSet[str]
    shoe: FrozenSet[str]
    bag: FrozenSet[str]
    sleeve: FrozenSet[str]
    collar: FrozenSet[str]
    shoe_lace: FrozenSet[str]

    def vocabularies(self) -> List[tuple]:
        """Return (name, sorted tags) pairs for display"""
        return [
            ("clothing", sorted(self.clothing)),
            ("shoe", sorted(self.shoe)),
            ("bag", sorted(self.bag)),
            ("sleeve", sorted(self.sleeve)),
            ("collar", sorted(self.collar)),
            ("shoe_lace", sorted(self.shoe_lace)),
        ]


class FashionMarkerConfig:
    """Predefined marker vocabularies for fashion and luxury catalogs"""

    @staticmethod
    def get_markers() -> CategoryMarkers:
        return CategoryMarkers(
            # Garments
            clothing=frozenset([
                "T恤", "衬衫", "毛衣", "卫衣", "夹克", "外套", "连衣裙",
                "半身裙", "裙", "裤", "牛仔裤", "大衣", "风衣", "西装",
            ]),
            # Footwear
            shoe=frozenset([
                "运动鞋", "高跟鞋", "凉鞋", "靴", "靴子", "乐福鞋", "平底鞋", "拖鞋",
            ]),
            # Bags and small leather goods
            bag=frozenset([
                "手提包", "斜挎包", "肩背包", "双肩包", "托特包", "手拿包",
                "钱包", "卡包", "腰包", "背包", "公文包",
            ]),
            sleeve=frozenset(["长袖", "短袖", "无袖", "七分袖"]),
            collar=frozenset(["圆领", "V领", "翻领", "立领", "高领"]),
            shoe_lace=frozenset([
                "有鞋带", "无鞋带", "圆绳鞋带", "扁平鞋带",
                "棉质鞋带", "编织鞋带", "皮革鞋带", "丝绸鞋带",
            ]),
        )


DEFAULT_MARKERS = FashionMarkerConfig.get_markers()
