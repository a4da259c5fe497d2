"""Rubric prompt for the design-vs-implementation vision assessment."""

DESIGN_LABEL = "Design mockup (reference):"
IMPLEMENTATION_LABEL = "Storybook implementation (actual):"

VISION_PROMPT = """You are comparing a design mockup against a Storybook implementation screenshot.

Analyze both images and provide a structured JSON assessment. Compare:
- **Layout**: Element positioning, alignment, flow direction
- **Spacing**: Padding, margins, gaps between elements
- **Typography**: Font size, weight, line height, letter spacing
- **Color**: Background colors, text colors, border colors, shadows
- **States**: Interactive states, hover effects, focus indicators (if visible)

CRITICAL: Respond with ONLY a JSON object. No markdown fences, no text before or after it.

{
  "pass": boolean (true if implementation is visually acceptable match),
  "confidence": number (0-1, how confident you are in your assessment),
  "issues": [
    {
      "category": "layout" | "spacing" | "typography" | "color" | "states" | "other",
      "severity": "minor" | "major" | "critical",
      "description": "specific description of the difference",
      "region": "where in the image (e.g. 'top-left', 'header', 'button area')"
    }
  ],
  "summary": "one-sentence overall assessment"
}

Rules:
- "pass" should be true only if there are no major or critical issues
- Minor issues (e.g. 1px alignment, slight color shade) can still pass
- Be specific about pixel values, colors, and measurements when possible
- "confidence" reflects how clearly you can assess the comparison"""
