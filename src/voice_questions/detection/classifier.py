import re
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple

from voice_questions.models import Classification, DomainTag

ACCEPTANCE_THRESHOLD = 0.6

PATTERN_CONFIDENCE = 0.5
BASE_CONFIDENCE = 0.2
KEYWORD_WEIGHT = 0.15
MAX_KEYWORD_BONUS = 0.45
MAX_CONFIDENCE = 0.95

# Order of the mapping is the tie-break order for domain selection.
DOMAIN_KEYWORDS: Mapping[DomainTag, Tuple[str, ...]] = MappingProxyType({
    DomainTag.PROGRAMMING: (
        "function", "method", "class", "object", "variable", "loop", "array",
        "algorithm", "runtime", "compile", "debug", "error", "exception",
        "syntax", "javascript", "python", "java", "c#", "typescript", "ruby",
        "rust", "go", "php", "swift", "kotlin", "code", "compiler", "interpreter",
        "recursion", "iteration", "inheritance", "polymorphism", "encapsulation",
        "data structure", "framework", "library", "api", "sdk", "lint", "import",
    ),
    DomainTag.DEVOPS: (
        "ci/cd", "pipeline", "jenkins", "docker", "kubernetes", "container",
        "orchestration", "deployment", "automation", "infrastructure", "terraform",
        "ansible", "chef", "puppet", "aws", "azure", "gcp", "cloud", "microservice",
        "serverless", "lambda", "function-as-a-service", "iaas", "paas", "saas",
        "devops", "sre", "gitlab", "github actions", "circle ci",
    ),
    DomainTag.DATABASE: (
        "database", "sql", "nosql", "query", "index", "relational", "mongo",
        "postgresql", "mysql", "oracle", "sqlite", "join", "transaction", "acid",
        "normalization", "denormalization", "schema", "table", "column", "row",
        "primary key", "foreign key", "couchbase", "cassandra", "redis", "memcached",
    ),
    DomainTag.NETWORKING: (
        "network", "tcp/ip", "http", "https", "dns", "ip address", "subnet",
        "gateway", "routing", "firewall", "vpn", "proxy", "load balancer", "cdn",
        "latency", "bandwidth", "packet", "protocol", "socket", "port", "nat",
    ),
    DomainTag.SECURITY: (
        "security", "encryption", "authentication", "authorization", "oauth",
        "jwt", "certificate", "vulnerability", "exploit", "penetration test",
        "firewall", "csrf", "xss", "sql injection", "hash", "salt", "cipher",
    ),
    DomainTag.WEB_DEVELOPMENT: (
        "html", "css", "javascript", "dom", "react", "angular", "vue", "svelte",
        "webpack", "babel", "responsive", "spa", "pwa", "web component", "sass",
        "less", "bootstrap", "tailwind", "ajax", "fetch", "restful", "graphql",
        "browser", "render", "accessibility", "a11y", "cors", "frontend", "backend",
    ),
    DomainTag.MOBILE_DEVELOPMENT: (
        "android", "ios", "swift", "kotlin", "react native", "flutter", "mobile",
        "app store", "play store", "notification", "responsive", "touch", "gesture",
        "xcode", "android studio", "emulator", "simulator",
    ),
    DomainTag.DATA_SCIENCE: (
        "data science", "machine learning", "statistics", "regression", "classification",
        "clustering", "neural network", "pandas", "numpy", "scipy", "matplotlib",
        "jupyter", "kaggle", "feature", "dataset", "model", "train", "test", "validate",
        "accuracy", "precision", "recall", "f1 score", "r squared", "visualization",
    ),
    DomainTag.ARTIFICIAL_INTELLIGENCE: (
        "ai", "artificial intelligence", "machine learning", "deep learning", "neural network",
        "nlp", "natural language processing", "computer vision", "reinforcement learning",
        "supervised", "unsupervised", "tensorflow", "pytorch", "keras", "transformers",
        "gpt", "bert", "llm", "large language model", "embedding", "tokens", "fine-tuning",
        "prompt engineering", "rlhf", "diffusion model",
    ),
    DomainTag.GENERAL: (
        "technical", "technology", "system", "architecture", "design pattern",
        "best practice", "implementation", "integration", "configuration", "setup",
        "install", "uninstall", "update", "upgrade", "downgrade", "compatibility",
        "performance", "optimization", "bottleneck", "scalability", "maintenance",
    ),
})

QUESTION_PATTERNS: Tuple[re.Pattern, ...] = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"how (?:do|can|would|should) i",
    r"how (?:to|do you)",
    r"what (?:is|are|does)",
    r"why (?:does|is|are|do)",
    r"can you explain",
    r"could you (?:help|tell|explain|describe)",
    r"difference between",
    r"when (?:should|would|do)",
    r"where (?:can|should|do)",
    r"\?$",
))

class DomainClassifier:
    """
    Coarse keyword-bucket classifier for technical questions.

    Confidence is a base score (question-shaped or not) plus a capped bonus
    per matched keyword. Text length is not taken into account, so a short
    "docker?" scores the same pattern boost as a full sentence.
    """

    def __init__(self,
                 vocabularies: Mapping[DomainTag, Tuple[str, ...]] = DOMAIN_KEYWORDS,
                 patterns: Sequence[re.Pattern] = QUESTION_PATTERNS,
                 threshold: float = ACCEPTANCE_THRESHOLD):
        self.vocabularies = vocabularies
        self.patterns = tuple(patterns)
        self.threshold = threshold
        # keyword -> compiled whole-word matcher, built once
        self._matchers: Dict[str, re.Pattern] = {}
        for keywords in vocabularies.values():
            for kw in keywords:
                if kw not in self._matchers:
                    self._matchers[kw] = re.compile(
                        r"(?<!\w)" + re.escape(kw) + r"(?!\w)", re.IGNORECASE
                    )

    def has_question_pattern(self, text: str) -> bool:
        return any(p.search(text) for p in self.patterns)

    def find_keywords(self, text: str) -> List[str]:
        return [kw for kw, matcher in self._matchers.items() if matcher.search(text)]

    def select_domain(self, keywords: Sequence[str]) -> Tuple[DomainTag, int]:
        if not keywords:
            return DomainTag.GENERAL, 0

        top_domain = DomainTag.GENERAL
        top_count = 0
        for domain, vocabulary in self.vocabularies.items():
            count = sum(1 for kw in keywords if kw in vocabulary)
            if count > top_count:
                top_domain, top_count = domain, count
        return top_domain, top_count

    def confidence(self, has_pattern: bool, keyword_count: int) -> float:
        score = PATTERN_CONFIDENCE if has_pattern else BASE_CONFIDENCE
        score += min(keyword_count * KEYWORD_WEIGHT, MAX_KEYWORD_BONUS)
        return min(score, MAX_CONFIDENCE)

    def classify(self, text: str) -> Classification:
        clean = text.strip().lower()
        has_pattern = self.has_question_pattern(clean)
        keywords = self.find_keywords(clean)
        category, _ = self.select_domain(keywords)
        confidence = self.confidence(has_pattern, len(keywords))
        is_technical = confidence > self.threshold
        return Classification(
            is_technical=is_technical,
            confidence=confidence,
            category=category if is_technical else None,
            matched_keywords=keywords,
        )
