"""
Prompt templates for carousel text and image generation.
"""
import math
import re
from enum import Enum
from typing import Dict, Optional, Sequence

from carouselai.domain.schemas.slide import SlideRecord


class PromptKind(str, Enum):
    """Prompt template identifiers."""
    CAROUSEL = "carousel"
    REFINE_CAROUSEL = "refine_carousel"
    REFINE_SLIDE = "refine_slide"
    STYLIZE_IMAGE = "stylize_image"
    EDIT_IMAGE = "edit_image"
    BACKGROUND_IMAGE = "background_image"


DOCUMENT_INSTRUCTION = (
    "Analyze the attached document thoroughly. Extract the key insights, "
    "main arguments, and important data points. "
)

DEFAULT_PROMPTS: Dict[PromptKind, str] = {
    PromptKind.CAROUSEL: """
Act as a viral social media copywriter and storytelling expert. {document_instruction}Create an Instagram Carousel about the following topic: "{topic}".

## CONTENT FRAMEWORK - AIDA Model with Storytelling

### Slide 1 - COVER (ATTENTION)
Create a title that triggers STRONG EMOTION. The hook must:
- Spark curiosity, controversy, or outrage
- Challenge common beliefs or reveal a "dirty secret"
- Use power words: "Why...", "The truth about...", "Stop doing...", "Nobody tells you..."
- Make it IMPOSSIBLE to scroll past without reading more
Type: COVER

### Slides 2-{interest_end} - INTEREST (First content slides)
Hook the reader deeper with:
- Surprising statistics or counterintuitive insights
- "Wait, what?" moments that build intrigue
- Promise of valuable information to come
Type: CONTENT

### Slides {desire_start}-{desire_end} - INTEREST + DESIRE (Middle to final content slides)
Deliver value while building desire:
- Main educational content and insights
- Show the transformation possible
- Include social proof or relatable examples
- Create "I need this" moments
- Final content slide should create urgency and anticipation for the CTA
Type: CONTENT

### Slide {count} - ACTION (CTA)
Clear, compelling call to action:
- Tell them exactly what to do next
- Make it easy to take action
- Connect back to the desire built throughout
Type: CTA

## STORYTELLING REQUIREMENTS
1. Every slide must flow naturally into the next - no disconnected points
2. Use a consistent narrative voice throughout
3. Build tension and release it with value
4. End each slide with an implicit "and then..." that pulls to the next

## FORMATTING
- Use Markdown for emphasis (# Header, **bold**)
- Keep text concise and punchy (tweet-length per slide)
- Use bullet points sparingly for lists

Create exactly {count} slides.
For each slide, determine if an image would enhance engagement (needsImage).
Provide a 'suggestedImagePrompt' for image generation. If no image needed, return empty string.

Return strictly JSON.
""",
    PromptKind.REFINE_CAROUSEL: """You are refining an Instagram carousel. Apply the following feedback to ALL slides while maintaining the AIDA framework and storytelling flow.

FEEDBACK: "{feedback}"

CURRENT CAROUSEL CONTENT:
{current_content}

Requirements:
1. Apply the feedback consistently across all {count} slides
2. Maintain each slide's type (COVER, CONTENT, CTA)
3. Keep the same number of slides ({count})
4. Preserve Markdown formatting (# headers, **bold**, etc.)
5. Keep suggestedImagePrompt relevant to the new content
6. PRESERVE THE AIDA STRUCTURE:
   - COVER slide must remain emotionally provocative and curiosity-inducing
   - Early CONTENT slides should build INTEREST with surprising insights
   - Later CONTENT slides should build DESIRE with transformation/benefits
   - CTA must connect to the desire built throughout
7. Maintain storytelling coherence - every slide should flow naturally into the next

Return strictly JSON with the refined slides.""",
    PromptKind.REFINE_SLIDE: """You are refining a single slide from an Instagram carousel. Apply the following feedback to this specific slide only.

FEEDBACK: "{feedback}"

CURRENT SLIDE CONTENT:
{current_content}

Requirements:
1. Apply the feedback to this slide
2. Maintain the slide type: {slide_type}
3. Preserve Markdown formatting (# headers, **bold**, etc.)
4. Update suggestedImagePrompt if content changed significantly
5. Preserve the slide's role in the AIDA framework:
   - COVER: Keep it emotionally provocative and curiosity-inducing
   - CONTENT: Maintain its role in building Interest or Desire
   - CTA: Keep it action-oriented and connected to the overall narrative

Return strictly JSON with ONE refined slide.""",
    PromptKind.STYLIZE_IMAGE: (
        "Transform this image with the following style: {instruction}. "
        "Maintain the core subject matter but apply the artistic transformation."
    ),
    PromptKind.EDIT_IMAGE: (
        "Edit this image according to the following instructions: {instruction}. "
        "Keep the main subject and composition, but apply the requested changes."
    ),
    PromptKind.BACKGROUND_IMAGE: (
        "Abstract atmospheric background for: {snippet}. "
        "Soft lighting, blurred details, suitable as text background."
    ),
}


def render(kind: PromptKind, **variables) -> str:
    return DEFAULT_PROMPTS[kind].format(**variables)


def carousel_prompt(topic: str, count: int, has_document: bool = False) -> str:
    """AIDA carousel prompt for ``count`` slides."""
    interest_end = math.ceil((count - 2) * 0.3) + 1
    return render(
        PromptKind.CAROUSEL,
        document_instruction=DOCUMENT_INSTRUCTION if has_document else "",
        topic=topic,
        interest_end=interest_end,
        desire_start=interest_end + 1,
        desire_end=count - 1,
        count=count,
    )


def format_slide(slide: SlideRecord, position: int) -> str:
    return f"Slide {position + 1} ({slide.type.value}):\n{slide.content}"


def refine_carousel_prompt(slides: Sequence[SlideRecord], feedback: str) -> str:
    current_content = "\n\n".join(format_slide(s, i) for i, s in enumerate(slides))
    return render(
        PromptKind.REFINE_CAROUSEL,
        feedback=feedback,
        current_content=current_content,
        count=len(slides),
    )


def refine_slide_prompt(slide: SlideRecord, feedback: str, position: int = 0) -> str:
    return render(
        PromptKind.REFINE_SLIDE,
        feedback=feedback,
        current_content=format_slide(slide, position),
        slide_type=slide.type.value,
    )


def styled_image_prompt(prompt: str, style: Optional[str], default_style: str) -> str:
    """Prefix an image prompt with the global image style."""
    return f"{style or default_style} {prompt}"


def stylize_instruction(instruction: str) -> str:
    return render(PromptKind.STYLIZE_IMAGE, instruction=instruction)


def edit_instruction(instruction: str) -> str:
    return render(PromptKind.EDIT_IMAGE, instruction=instruction)


def background_prompt(content: str) -> str:
    """Background prompt derived from slide text with markdown marks stripped."""
    snippet = re.sub(r"[#*_~]", "", content[:100])
    return render(PromptKind.BACKGROUND_IMAGE, snippet=snippet)
