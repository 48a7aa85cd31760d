"""Fixed offline corpus served when the catalog cannot be reached."""

from __future__ import annotations

import random
from dataclasses import replace
from datetime import UTC, datetime

from paper_match.models import Paper, PaperSource


def _ts(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=UTC)


OFFLINE_CORPUS: tuple[Paper, ...] = (
    Paper(
        id="1",
        title="Attention Is All You Need",
        authors=["Ashish Vaswani", "Noam Shazeer", "Niki Parmar"],
        abstract=(
            "The dominant sequence transduction models are based on complex recurrent or "
            "convolutional neural networks that include an encoder and a decoder. The best "
            "performing models also connect the encoder and decoder through an attention mechanism."
        ),
        published_date=_ts(1496275200),
        source=PaperSource.ARXIV,
        categories=["Machine Learning", "Natural Language Processing"],
        url="https://arxiv.org/abs/1706.03762",
        pdf_url="https://arxiv.org/pdf/1706.03762.pdf",
    ),
    Paper(
        id="2",
        title="BERT: Pre-training of Deep Bidirectional Transformers for Language Understanding",
        authors=["Jacob Devlin", "Ming-Wei Chang", "Kenton Lee"],
        abstract=(
            "We introduce a new language representation model called BERT, which stands for "
            "Bidirectional Encoder Representations from Transformers."
        ),
        published_date=_ts(1539648000),
        source=PaperSource.ARXIV,
        categories=["Natural Language Processing", "Deep Learning"],
        url="https://arxiv.org/abs/1810.04805",
        pdf_url="https://arxiv.org/pdf/1810.04805.pdf",
    ),
    Paper(
        id="3",
        title="GPT-3: Language Models are Few-Shot Learners",
        authors=["Tom B. Brown", "Benjamin Mann", "Nick Ryder"],
        abstract=(
            "Recent work has demonstrated substantial gains on many NLP tasks and benchmarks by "
            "pre-training on a large corpus of text followed by fine-tuning on a specific task."
        ),
        published_date=_ts(1590969600),
        source=PaperSource.ARXIV,
        categories=["Natural Language Processing", "Large Language Models"],
        url="https://arxiv.org/abs/2005.14165",
        pdf_url="https://arxiv.org/pdf/2005.14165.pdf",
    ),
    Paper(
        id="4",
        title="ResNet: Deep Residual Learning for Image Recognition",
        authors=["Kaiming He", "Xiangyu Zhang", "Shaoqing Ren"],
        abstract=(
            "Deeper neural networks are more difficult to train. We present a residual learning "
            "framework to ease the training of networks that are substantially deeper than those "
            "used previously."
        ),
        published_date=_ts(1512086400),
        source=PaperSource.ARXIV,
        categories=["Computer Vision", "Deep Learning"],
        url="https://arxiv.org/abs/1512.03385",
        pdf_url="https://arxiv.org/pdf/1512.03385.pdf",
    ),
    Paper(
        id="5",
        title="Vision Transformer: An Image is Worth 16x16 Words",
        authors=["Alexey Dosovitskiy", "Lucas Beyer", "Alexander Kolesnikov"],
        abstract=(
            "While the Transformer architecture has become the de-facto standard for natural "
            "language processing tasks, its applications to computer vision remain limited."
        ),
        published_date=_ts(1603756800),
        source=PaperSource.ARXIV,
        categories=["Computer Vision", "Transformers"],
        url="https://arxiv.org/abs/2010.11929",
        pdf_url="https://arxiv.org/pdf/2010.11929.pdf",
    ),
    Paper(
        id="6",
        title="Distributed Deep Learning for IoT Devices",
        authors=["John Smith", "Alice Johnson", "Bob Wilson"],
        abstract=(
            "Internet of Things (IoT) devices generate massive amounts of data that require "
            "efficient processing. This paper presents a novel approach to distributed deep "
            "learning specifically designed for resource-constrained IoT environments."
        ),
        published_date=_ts(1640995200),
        source=PaperSource.IEEE,
        categories=["IoT", "Distributed Computing", "Deep Learning"],
        url="https://ieeexplore.ieee.org/document/example1",
    ),
    Paper(
        id="7",
        title="Quantum Computing Applications in Machine Learning",
        authors=["Sarah Chen", "Michael Brown", "David Lee"],
        abstract=(
            "Quantum computing promises to revolutionize machine learning by providing "
            "exponential speedups for certain algorithms. This survey explores current "
            "applications and future potential of quantum machine learning."
        ),
        published_date=_ts(1641081600),
        source=PaperSource.ACM,
        categories=["Quantum Computing", "Machine Learning"],
        url="https://dl.acm.org/doi/example1",
    ),
    Paper(
        id="8",
        title="Federated Learning: Collaborative Machine Learning without Centralized Data",
        authors=["Jessica Wang", "Ahmed Hassan", "Maria Garcia"],
        abstract=(
            "Federated learning enables machine learning algorithms to gain experience from a "
            "broad range of data located at different sites without the data being centralized."
        ),
        published_date=_ts(1642291200),
        source=PaperSource.ARXIV,
        categories=["Machine Learning", "Privacy", "Distributed Systems"],
        url="https://arxiv.org/abs/example2",
        pdf_url="https://arxiv.org/pdf/example2.pdf",
    ),
    Paper(
        id="9",
        title="Graph Neural Networks for Social Network Analysis",
        authors=["Robert Kim", "Lisa Zhang", "James Wilson"],
        abstract=(
            "We present a comprehensive study of graph neural networks applied to social network "
            "analysis, demonstrating superior performance in link prediction and community "
            "detection tasks."
        ),
        published_date=_ts(1643500800),
        source=PaperSource.IEEE,
        categories=["Graph Neural Networks", "Social Networks", "Deep Learning"],
        url="https://ieeexplore.ieee.org/document/example2",
    ),
    Paper(
        id="10",
        title="Reinforcement Learning for Autonomous Vehicle Navigation",
        authors=["Elena Rodriguez", "Kevin Liu", "Amanda Foster"],
        abstract=(
            "This paper explores the application of deep reinforcement learning to autonomous "
            "vehicle navigation in complex urban environments, achieving state-of-the-art "
            "performance in simulation."
        ),
        published_date=_ts(1644710400),
        source=PaperSource.ARXIV,
        categories=["Reinforcement Learning", "Autonomous Vehicles", "Robotics"],
        url="https://arxiv.org/abs/example3",
        pdf_url="https://arxiv.org/pdf/example3.pdf",
    ),
)


def offline_papers(max_results: int, rng: random.Random) -> list[Paper]:
    """Return a shuffled slice of the offline corpus.

    Records are copied so callers can never mutate the shared corpus.
    """
    papers = [
        replace(paper, authors=list(paper.authors), categories=list(paper.categories))
        for paper in OFFLINE_CORPUS
    ]
    rng.shuffle(papers)
    return papers[: max(1, max_results)]


__all__ = [
    "OFFLINE_CORPUS",
    "offline_papers",
]
