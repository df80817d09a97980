"""Prompt templates sent to the generation service.

Placeholders are substituted with ``str.replace`` because the templates
contain literal JSON braces.
"""

ENHANCEMENT_PROMPT = """\
Read the paragraph below and find its single highest-signal "nugget": the one
sentence or clause carrying the core insight, a counter-intuitive fact, or the
key argument. Be extremely selective.

Rules:
- Skip "setup" and topic sentences ("Here is why this matters..." is setup;
  "The reason is X..." is the nugget).
- If the paragraph is transitional, conversational filler, or low-information,
  return null. Highlighting nothing beats highlighting noise.
- The selection MUST be an exact, verbatim substring of the paragraph. Never
  rephrase, shorten, or fix it.
- The substring must read as a standalone statement.

Paragraph:
\"\"\"
{paragraph}
\"\"\"

Return ONLY valid JSON, with no markdown and no code fences:
{"insight": "exact text from the paragraph"} or {"insight": null}"""


STRUCTURE_PROMPT = """\
Build a navigation outline for the article below.

Article title: "{title}"

Paragraphs (each prefixed with its index):
{paragraphs}

Tasks:
1. Group consecutive paragraphs into 3-8 logical sections by topic.
2. Give each section a concise, descriptive title of 2-5 words (avoid generic
   labels such as "Introduction").
3. Write a one-sentence summary (about 10-20 words) telling the reader what
   the section covers.
4. Use level 1 for main sections and level 2 for the occasional subsection.
5. If the article title is vague, propose a better one; otherwise use null.
6. Write a one-line TL;DR of the whole article.

Return ONLY valid JSON, with no markdown and no code fences:
{
  "sections": [
    {
      "id": "section-0",
      "title": "Section Title",
      "summary": "What this section covers in one sentence.",
      "startParagraphIndex": 0,
      "endParagraphIndex": 2,
      "level": 1
    }
  ],
  "generatedTitle": "Better Title or null",
  "tldr": "One line summary of the entire article."
}"""


PASTE_STRUCTURE_PROMPT = """\
The text below was pasted by a reader. Recover its article structure.

Text:
\"\"\"
{content}
\"\"\"

Rules:
- Keep every original sentence; do not summarise or rewrite.
- Split long blocks into logical paragraphs of roughly 2-5 sentences.
- Repair copy-paste damage (stray spaces, lines broken mid-sentence).
- Preserve reading order.
- Use a leading heading as the title if there is one, otherwise write a
  concise title of at most 100 characters.

Return ONLY valid JSON, with no markdown and no code fences:
{
  "title": "article title",
  "author": "author name if stated, otherwise null",
  "paragraphs": ["first paragraph", "second paragraph"]
}"""
