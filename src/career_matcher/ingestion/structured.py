"""Structured-extraction collaborators for résumé text."""

import json
import re
from typing import Any, Dict, List, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_groq import ChatGroq
from langchain_openai import ChatOpenAI

from career_matcher.config import settings
from career_matcher.core.models import EducationLevel, unique_tokens
from career_matcher.utils.logging import get_logger

logger = get_logger(__name__)


class KeywordStructuredExtractor:
    """Offline extractor built on skill vocabularies and regex patterns."""

    def __init__(self):
        self.logger = logger.bind(component="keyword_extractor")

        self.skill_patterns = self._load_skill_patterns()
        self.experience_patterns = self._load_experience_patterns()
        self.title_keywords = [
            "engineer", "developer", "manager", "analyst", "scientist",
            "designer", "architect", "consultant", "lead", "intern",
        ]
        self.education_context = re.compile(
            r"degree|university|college|school|diploma|ph\.?d|doctorate|bachelor|master of|mba|b\.sc|m\.sc",
            re.IGNORECASE,
        )
        self.strength_indicators = {
            "leadership": "Leadership",
            "mentor": "Mentoring",
            "communication": "Communication",
            "problem solving": "Problem solving",
            "collaborat": "Collaboration",
            "ownership": "Ownership",
        }

    def _load_skill_patterns(self) -> Dict[str, List[str]]:
        """Load patterns for identifying skills by category."""
        return {
            "programming_languages": [
                r"\b(Python|Java|JavaScript|TypeScript|C\+\+|C#|Rust|Ruby|PHP|Kotlin)(?![\w+#])",
                r"\b(HTML|CSS|SQL|GraphQL)\b",
            ],
            "frameworks": [
                r"\b(React|Angular|Vue\.js|Node\.js|Next\.js|Django|Flask|FastAPI|Spring Boot)\b",
                r"\b(Tailwind CSS|Tailwind|Redux|Jest|Webpack)\b",
            ],
            "databases": [
                r"\b(MySQL|PostgreSQL|MongoDB|Redis|Elasticsearch|Cassandra|DynamoDB)\b",
            ],
            "cloud_platforms": [
                r"\b(AWS|Azure|GCP|Google Cloud|Docker|Kubernetes|Terraform|Ansible|Jenkins)\b",
            ],
            "data_science": [
                r"\b(Machine Learning|Deep Learning|TensorFlow|PyTorch|Scikit-learn|Pandas|NumPy)\b",
            ],
            "practices": [
                r"\b(Agile|Scrum|REST APIs?|Microservices|Git|Figma)\b",
            ],
        }

    def _load_experience_patterns(self) -> List[str]:
        """Load patterns for extracting total years of experience."""
        return [
            r"(\d+(?:\.\d+)?)\+?\s*years?\s*of\s*(?:professional\s*)?experience",
            r"experience\s*(?:of|:)\s*(\d+(?:\.\d+)?)\+?\s*years?",
            r"(\d+(?:\.\d+)?)\+?\s*years?\s*(?:in|as)\s",
        ]

    async def extract(self, text: str, schema: Dict[str, Any]) -> Dict[str, Any]:
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        analysis = {
            "skills": self._extract_skills(text),
            "experience_years": self._extract_experience_years(text),
            "education_level": self._extract_education(text).label,
            "job_titles": self._extract_titles(lines),
            "summary": self._extract_summary(lines),
            "strengths": self._extract_strengths(text),
        }

        self.logger.info(
            "Résumé analysed with keyword extractor",
            skills_count=len(analysis["skills"]),
            experience_years=analysis["experience_years"],
            education_level=analysis["education_level"]
        )
        return analysis

    def _extract_skills(self, text: str) -> List[str]:
        found = []
        for patterns in self.skill_patterns.values():
            for pattern in patterns:
                found.extend(match.group(1) for match in re.finditer(pattern, text, re.IGNORECASE))
        return list(unique_tokens(found))

    def _extract_experience_years(self, text: str) -> float:
        years = [
            float(match.group(1))
            for pattern in self.experience_patterns
            for match in re.finditer(pattern, text, re.IGNORECASE)
        ]
        return max(years) if years else 0.0

    def _extract_education(self, text: str) -> EducationLevel:
        best = EducationLevel.NONE
        for line in text.splitlines():
            if not self.education_context.search(line):
                continue
            try:
                level = EducationLevel.parse(line)
            except ValueError:
                continue
            best = max(best, level)
        return best

    def _extract_titles(self, lines: List[str]) -> List[str]:
        titles = []
        for line in lines:
            candidate = re.split(r"\s[-|@,]\s|\sat\s", line, maxsplit=1)[0].strip()
            if len(candidate) > 60:
                continue
            if any(keyword in candidate.lower() for keyword in self.title_keywords):
                titles.append(candidate)
        return list(unique_tokens(titles))

    def _extract_summary(self, lines: List[str]) -> str:
        for line in lines:
            if len(line.split()) >= 8:
                return line
        return lines[0] if lines else ""

    def _extract_strengths(self, text: str) -> List[str]:
        lowered = text.lower()
        return [label for indicator, label in self.strength_indicators.items() if indicator in lowered]


class LLMStructuredExtractor:
    """Extractor backed by a LangChain chat model returning JSON."""

    def __init__(self, model: Optional[Any] = None):
        """
        Initialize the extractor.

        Args:
            model: Optional chat model for testing. If None, one is created from settings.
        """
        self.model = model if model is not None else self._create_model()
        self.logger = logger.bind(component="llm_extractor")

    def _create_model(self) -> Any:
        """Create the model for structured extraction."""
        if settings.openai_api_key:
            return ChatOpenAI(
                model=settings.extraction_model,
                api_key=settings.openai_api_key,
                temperature=0.0,
                max_tokens=1024,
                timeout=settings.collaborator_timeout,
            )
        elif settings.groq_api_key:
            return ChatGroq(
                model=settings.groq_extraction_model,
                api_key=settings.groq_api_key,
                temperature=0.0,
                max_tokens=1024,
                timeout=settings.collaborator_timeout,
            )
        else:
            raise ValueError("No API keys configured for extraction model")

    async def extract(self, text: str, schema: Dict[str, Any]) -> Dict[str, Any]:
        messages = [
            SystemMessage(content=self._build_system_prompt(schema)),
            HumanMessage(content=f"Analyze this resume and extract key information:\n\n{text}"),
        ]
        response = await self.model.ainvoke(messages)
        payload = self._parse_json(response.content)

        self.logger.info("Résumé analysed with language model", fields=sorted(payload))
        return payload

    def _build_system_prompt(self, schema: Dict[str, Any]) -> str:
        return (
            "You extract structured data from resumes.\n"
            "Respond with a single JSON object and nothing else. "
            "It must validate against this JSON schema:\n"
            f"{json.dumps(schema, indent=2)}\n"
            "Use 0 for experience_years when it cannot be determined."
        )

    def _parse_json(self, content: Any) -> Dict[str, Any]:
        if isinstance(content, list):
            content = "".join(part if isinstance(part, str) else part.get("text", "") for part in content)
        text = str(content).strip()

        # Models sometimes wrap JSON in a fenced code block
        fenced = re.search(r"```(?:json)?\s*(.*?)```", text, re.DOTALL)
        if fenced:
            text = fenced.group(1).strip()

        payload = json.loads(text)
        if not isinstance(payload, dict):
            raise ValueError("Extraction response is not a JSON object")
        return payload
