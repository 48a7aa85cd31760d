"""Deterministic English -> Japanese phrase substitution.

Used whenever live translation is unavailable or fails. The output is
marked with FALLBACK_MARKER so readers know it is not authoritative.
"""

from __future__ import annotations

import re

FALLBACK_MARKER = "[翻訳] "

# Placeholder delimiters are drawn from the Unicode private use area
_PRIVATE_USE = range(0xE000, 0xF900)

PHRASES: tuple[tuple[str, str], ...] = (
    ("neural network", "ニューラルネットワーク"),
    ("machine learning", "機械学習"),
    ("artificial intelligence", "人工知能"),
    ("deep learning", "深層学習"),
    ("computer vision", "コンピュータビジョン"),
    ("natural language processing", "自然言語処理"),
    ("transformer", "トランスフォーマー"),
    ("attention", "アテンション"),
    ("algorithm", "アルゴリズム"),
    ("dataset", "データセット"),
    ("model", "モデル"),
    ("performance", "性能"),
    ("accuracy", "精度"),
    ("training", "訓練"),
    ("method", "手法"),
    ("approach", "アプローチ"),
    ("framework", "フレームワーク"),
    ("evaluation", "評価"),
    ("results", "結果"),
    ("experiment", "実験"),
    ("analysis", "分析"),
    ("implementation", "実装"),
    ("optimization", "最適化"),
    ("classification", "分類"),
    ("regression", "回帰"),
    ("clustering", "クラスタリング"),
    ("feature", "特徴"),
    ("parameter", "パラメータ"),
    ("hyperparameter", "ハイパーパラメータ"),
    ("architecture", "アーキテクチャ"),
    ("representation", "表現"),
    ("embedding", "埋め込み"),
    ("gradient", "勾配"),
    ("loss function", "損失関数"),
    ("objective function", "目的関数"),
    ("convolution", "畳み込み"),
    ("recurrent", "再帰"),
    ("feedback", "フィードバック"),
    ("feedforward", "フィードフォワード"),
    ("supervised", "教師あり"),
    ("unsupervised", "教師なし"),
    ("reinforcement", "強化"),
    ("semi-supervised", "半教師あり"),
    ("we propose", "我々は提案する"),
    ("we present", "我々は提示する"),
    ("we demonstrate", "我々は実証する"),
    ("we show", "我々は示す"),
    ("in this paper", "本論文では"),
    ("our method", "我々の手法"),
    ("our approach", "我々のアプローチ"),
    ("our model", "我々のモデル"),
    ("state-of-the-art", "最先端"),
    ("compared to", "と比較して"),
    ("significantly", "有意に"),
    ("substantially", "大幅に"),
    ("effectiveness", "効果"),
    ("efficiency", "効率"),
    ("robustness", "堅牢性"),
    ("scalability", "スケーラビリティ"),
)

# Applied in this order, after the phrase pass, as literal matches
CONNECTIVES: tuple[tuple[str, str], ...] = (
    (" and ", "と"),
    (" or ", "または"),
    (" the ", "その"),
    (" a ", "ある"),
    (" an ", "ある"),
    (" to ", "に"),
    (" of ", "の"),
    (" in ", "で"),
    (" on ", "において"),
    (" for ", "のための"),
    (" with ", "を用いて"),
    (" by ", "によって"),
    (" using ", "を使用して"),
    (" based on ", "に基づいて"),
)

# Longest source phrase first; sorted() is stable so ties keep table order
_PHRASE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(re.escape(source), re.IGNORECASE), target)
    for source, target in sorted(PHRASES, key=lambda pair: len(pair[0]), reverse=True)
]


def _delimiter(text: str) -> str:
    """Pick a private-use character that does not occur in ``text``."""
    for code in _PRIVATE_USE:
        if chr(code) not in text:
            return chr(code)
    raise ValueError("Text uses every private-use character")


def _substitute(
    text: str, pattern: re.Pattern[str], target: str, inserted: list[str], delimiter: str
) -> str:
    def _protect(_match: re.Match[str]) -> str:
        inserted.append(target)
        return f"{delimiter}{len(inserted) - 1}{delimiter}"

    return pattern.sub(_protect, text)


def translate(text: str) -> str:
    """Translate ``text`` by table substitution and prefix the fallback marker.

    Each replacement is swapped for a placeholder until the end, so no
    later phrase or connective can match inside already-translated text.
    """
    inserted: list[str] = []
    delimiter = _delimiter(text)
    result = text
    for pattern, target in _PHRASE_PATTERNS:
        result = _substitute(result, pattern, target, inserted, delimiter)
    for source, target in CONNECTIVES:
        result = _substitute(
            result, re.compile(re.escape(source)), target, inserted, delimiter
        )
    restore = re.compile(f"{delimiter}(\\d+){delimiter}")
    result = restore.sub(lambda m: inserted[int(m.group(1))], result)
    return FALLBACK_MARKER + result


def batch_translate(texts: list[str]) -> list[str]:
    """Translate element-wise; empty strings pass through unchanged."""
    return [translate(text) if text else text for text in texts]


__all__ = [
    "CONNECTIVES",
    "FALLBACK_MARKER",
    "PHRASES",
    "batch_translate",
    "translate",
]
