"""
VibeSync Curation Prompts
큐레이션 프롬프트 렌더링 (후보는 위치 인덱스 ID i로 참조)
"""

from typing import Literal, Sequence

from .models import Candidate, CurationRequest

CurationStyle = Literal["themed", "list"]

SYSTEM_INSTRUCTION = (
    "You are a strict JSON API. Respond ONLY with valid raw JSON. No markdown."
)

_THEMED_TEMPLATE = """
User Input: "{mood}"
Preferred Genre: "{genre}"

Candidate Songs (ranked by similarity):
{candidates}

Task 1: Analyze the user's input and determine a clear visual and emotional "vibe".
Task 2: Select the TOP {count} songs from the candidates that best match this vibe.

Color Rules (VERY IMPORTANT):
- Return ONLY a BACKGROUND color.
- Must have high contrast with white text (#FFFFFF).
- Use deep, dark, or saturated colors.
- Avoid light, pastel, neon colors.

Song Rules:
- Only choose songs from the candidate list, using their exact title and artist.
- Strong emotional match only.
- ONE short sentence explaining why each song fits.

Output Rules:
- STRICT raw JSON
- NO markdown
- EXACT format below

{{
  "theme": {{
    "moodName": "Short mood name",
    "hexColor": "#RRGGBB"
  }},
  "recommendations": [
    {{
      "title": "Exact Title",
      "artist": "Exact Artist",
      "reason": "Short reason"
    }}
  ]
}}
"""

_LIST_TEMPLATE = """
You are an expert Music Curator.

User Mood: "{mood}"
User Preferred Genre: "{genre}"

Here are {total} candidate songs selected based on lyrical similarity:
{candidates}

TASK:
1. Select the BEST {min_count}-{max_count} songs that match BOTH the user's mood AND genre preference.
2. If the user prefers a genre, STRICTLY exclude songs from other genres.
3. Only choose songs from the candidate list, using their exact title and artist.
4. For each selected song, write a single-sentence explanation describing the vibe match.
5. Return ONLY valid raw JSON in this format:

[
  {{
    "title": "Song Name",
    "artist": "Artist Name",
    "reason": "Why this song fits the mood and genre"
  }}
]
"""


def render_candidates(candidates: Sequence[Candidate], with_source: bool = False) -> str:
    """ID 0: "title" by "artist" 형식의 후보 목록"""
    lines = []
    for i, cand in enumerate(candidates):
        line = f'ID {i}: "{cand.title}" by "{cand.artist}"'
        if with_source:
            line += f" [Matched via: {cand.source_tag}]"
        lines.append(line)
    return "\n".join(lines)


def build_prompt(
    request: CurationRequest,
    style: CurationStyle = "themed",
    selection_count: int = 8,
    min_selection: int = 5,
    max_selection: int = 10
) -> str:
    if style == "list":
        return _LIST_TEMPLATE.format(
            mood=request.mood,
            genre=request.genre,
            total=len(request.candidates),
            candidates=render_candidates(request.candidates),
            min_count=min_selection,
            max_count=max_selection,
        )
    return _THEMED_TEMPLATE.format(
        mood=request.mood,
        genre=request.genre,
        candidates=render_candidates(request.candidates, with_source=True),
        count=selection_count,
    )
