"""Request Builder - assembles the generation request and its prompt."""

from ..models import BodyData, GenerationRequest, UploadedImage


NOT_PROVIDED = "Not provided"

OUTFIT_PROMPT_INTRO = """You are an AI fashion assistant. Given a photo of a person and a photo of a clothing item, generate a realistic image showing what the person would look like wearing that clothing item.

Consider:
- The person's body type, pose, and lighting in the original photo
- The clothing item's style, color, pattern, and fit
- Natural shadows, wrinkles, and fabric behavior
- Realistic proportions and perspective"""

OUTFIT_PROMPT_CLOSING = (
    "Please generate a photorealistic image of the person wearing the clothing item."
)


def build_measurements_section(body_data: BodyData) -> str:
    """Render body data as a fixed-order block (height, weight, body type)."""
    return (
        "Person's measurements:\n"
        f"- Height: {body_data.height or NOT_PROVIDED}\n"
        f"- Weight: {body_data.weight or NOT_PROVIDED}\n"
        f"- Body type: {body_data.body_type or NOT_PROVIDED}"
    )


def build_prompt(body_data: BodyData | None = None) -> str:
    """Build the natural-language instruction sent with both images."""
    sections = [OUTFIT_PROMPT_INTRO]
    if body_data is not None:
        sections.append(build_measurements_section(body_data))
    sections.append(OUTFIT_PROMPT_CLOSING)
    return "\n\n".join(sections)


def build_request(
    person_image: UploadedImage,
    clothing_image: UploadedImage,
    body_data: BodyData | None = None,
) -> GenerationRequest:
    """Assemble a fresh GenerationRequest.

    Assumes both images already passed validation; performs no I/O.
    """
    return GenerationRequest(
        person_image=person_image.data,
        person_mime_type=person_image.mime_type,
        person_image_name=person_image.name,
        clothing_image=clothing_image.data,
        clothing_mime_type=clothing_image.mime_type,
        clothing_image_name=clothing_image.name,
        body_data=body_data,
        prompt=build_prompt(body_data),
    )
