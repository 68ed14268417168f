"""
Prompt Assembler

Renders a RepositorySnapshot into the classification prompt. Pure and
deterministic: the same locator and snapshot always give the same string.
"""

from .locator import RepositoryLocator
from .metrics import calculate_commit_cadence
from .schemas import RepositorySnapshot

# Truncation caps
README_CHAR_LIMIT = 2000
MAX_FILES = 5
FILE_CHAR_LIMIT = 1000
MAX_COMMITS = 15


SYSTEM_PROMPT = """You are an expert code analyst specializing in detecting AI-assisted development patterns.
You analyze repositories to determine the "Vibe Code Index" (VCI) - a score from 0-100 indicating how much AI assistance was likely used.

Scoring guidelines:
- 0-20: Clearly human-written code with personal style, inconsistencies, creative solutions
- 21-40: Mostly human with minimal AI assistance
- 41-60: Hybrid approach with moderate AI assistance
- 61-80: Heavy AI assistance with human oversight
- 81-100: Predominantly AI-generated with minimal human modification

Key indicators to look for:

AI-Generated Patterns:
- Overly consistent code formatting
- Perfect documentation coverage
- Systematic error handling patterns
- Generic variable and function names
- Boilerplate-heavy structure
- Templated commit messages
- Large, infrequent commits
- Perfect grammar in documentation

Human-Written Patterns:
- Inconsistent formatting styles
- Personal coding quirks
- Creative problem-solving approaches
- Organic code evolution
- Iterative development history
- Casual commit messages
- Frequent small commits

Respond ONLY with a JSON object containing:
- vciScore: number (0-100)
- analysis: string (2-3 sentences explaining the assessment)
- confidence: number (0-100, how confident you are in the assessment)
- indicators: object with arrays of specific patterns found (codePatterns, commitPatterns, documentationPatterns)"""


RUBRIC = """Based on the above repository data, analyze for AI assistance patterns:

Code Patterns to look for:
- Consistent formatting and style across all files
- Perfect documentation coverage and formatting
- Systematic error handling patterns
- Generic variable names and function structures
- Boilerplate-heavy code structure
- Overly comprehensive type definitions
- Perfect code organization

Commit Patterns to analyze:
- Templated or overly formal commit messages
- Large, infrequent commits vs. small iterative ones
- Perfect commit message formatting and grammar
- Lack of "work in progress" or experimental commits
- Commits that add complete features at once

Documentation Patterns:
- Overly comprehensive README with perfect formatting
- Perfect grammar and professional language throughout
- Generic project descriptions
- Complete API documentation from the start
- Lack of personal voice or informal language

Provide a JSON response with exactly this shape:
{
  "vciScore": <integer 0-100, likelihood of AI assistance>,
  "analysis": "<clear explanation of your assessment>",
  "confidence": <integer 0-100, how certain you are>,
  "indicators": {
    "codePatterns": ["<specific pattern found>"],
    "commitPatterns": ["<specific pattern found>"],
    "documentationPatterns": ["<specific pattern found>"]
  }
}

Be thorough but concise in your analysis. Return ONLY the JSON object, no other text or markdown formatting."""


def _readme_section(snapshot: RepositorySnapshot) -> str:
    if snapshot.readme:
        return f"README Content (first {README_CHAR_LIMIT} chars):\n{snapshot.readme[:README_CHAR_LIMIT]}\n\n"
    return "No README file found.\n\n"


def _files_section(snapshot: RepositorySnapshot) -> str:
    files = snapshot.files
    if not files:
        return f"No {snapshot.manifest_path} or key files found.\n\n"

    section = "Code Files Analysis:\n"
    for path, content in files[:MAX_FILES]:
        section += f"File: {path}\n{content[:FILE_CHAR_LIMIT]}\n\n"
    return section


def _commits_section(snapshot: RepositorySnapshot) -> str:
    commits = snapshot.commits[:MAX_COMMITS]
    if not commits:
        return "No commit history available.\n\n"

    section = f"Recent Commit Messages (last {len(commits)} commits):\n"
    for commit in commits:
        section += f'- "{commit.message}" by {commit.author} on {commit.date}\n'

    cadence = calculate_commit_cadence(commits)
    if cadence:
        section += (
            f"Commit cadence: {cadence.dated_commits} commits across {cadence.active_days} active days "
            f"(burst ratio {cadence.burst_ratio:.2f}, {cadence.interpretation})\n"
        )
    return section + "\n"


def assemble_prompt(locator: RepositoryLocator, snapshot: RepositorySnapshot) -> str:
    """Build the user-turn prompt: locator, README, key files, commits, rubric."""
    return (
        f"Analyze this GitHub repository for AI development patterns: {locator.url}\n\n"
        + _readme_section(snapshot)
        + _files_section(snapshot)
        + _commits_section(snapshot)
        + RUBRIC
    )
