"""Sample job postings for demos and the CLI's default catalog."""

from datetime import datetime, timedelta
from typing import List, Optional

from career_matcher.core.models import EducationLevel, JobPosting, utcnow


def sample_postings(now: Optional[datetime] = None) -> List[JobPosting]:
    """Five frontend-leaning postings, dated relative to ``now``."""
    now = now or utcnow()
    return [
        JobPosting(
            id="1",
            title="Senior Frontend Developer",
            company="TechCorp Inc.",
            location="San Francisco, CA",
            employment_type="Full-time",
            salary_range="$120,000 - $160,000",
            description=(
                "We are looking for a Senior Frontend Developer to join our team "
                "and help build amazing user experiences."
            ),
            required_skills=["React", "TypeScript", "JavaScript", "CSS", "HTML"],
            preferred_skills=["Next.js", "Tailwind CSS", "GraphQL", "Jest"],
            experience_required_years=5,
            education_required=EducationLevel.BACHELOR,
            posted_at=now - timedelta(days=2),
        ),
        JobPosting(
            id="2",
            title="Full Stack Developer",
            company="StartupXYZ",
            location="Remote",
            employment_type="Full-time",
            salary_range="$90,000 - $130,000",
            description=(
                "Join our fast-growing startup as a Full Stack Developer and help "
                "shape the future of our platform."
            ),
            required_skills=["JavaScript", "Node.js", "React", "MongoDB", "Express"],
            preferred_skills=["AWS", "Docker", "Redis", "TypeScript"],
            experience_required_years=3,
            education_required=EducationLevel.BACHELOR,
            posted_at=now - timedelta(weeks=1),
        ),
        JobPosting(
            id="3",
            title="React Developer",
            company="Digital Agency Pro",
            location="New York, NY",
            employment_type="Contract",
            salary_range="$80 - $100/hour",
            description="We need a skilled React Developer for a 6-month contract to build client applications.",
            required_skills=["React", "JavaScript", "CSS", "Git"],
            preferred_skills=["Redux", "Styled Components", "Webpack"],
            experience_required_years=3,
            education_required=EducationLevel.NONE,
            posted_at=now - timedelta(days=3),
        ),
        JobPosting(
            id="4",
            title="UI/UX Developer",
            company="Design Studio",
            location="Los Angeles, CA",
            employment_type="Part-time",
            salary_range="$60,000 - $80,000",
            description="Looking for a UI/UX Developer to bridge the gap between design and development.",
            required_skills=["HTML", "CSS", "JavaScript", "Figma", "Adobe Creative Suite"],
            preferred_skills=["React", "Vue.js", "SASS", "Animation"],
            experience_required_years=2,
            education_required=EducationLevel.BACHELOR,
            posted_at=now - timedelta(days=5),
        ),
        JobPosting(
            id="5",
            title="Software Engineer",
            company="Enterprise Solutions",
            location="Chicago, IL",
            employment_type="Full-time",
            salary_range="$100,000 - $140,000",
            description=(
                "Join our enterprise team to build scalable software solutions "
                "for Fortune 500 clients."
            ),
            required_skills=["Java", "Spring Boot", "SQL", "REST APIs"],
            preferred_skills=["Microservices", "Kubernetes", "Jenkins", "Agile"],
            experience_required_years=4,
            education_required=EducationLevel.BACHELOR,
            posted_at=now - timedelta(weeks=1, hours=1),
        ),
    ]
