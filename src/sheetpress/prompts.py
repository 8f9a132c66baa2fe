"""Instruction prompt handed to the page generator on stdin."""

from sheetpress.config import SiteConfig
from sheetpress.tasks.models import ContentType

_TYPE_PATHS = "\n".join(
    f'   - If type is "{t.value}" => create {t.section}/<slug>/index.html' for t in ContentType
)

_GENERATION_PROMPT = """\
You are working in a static website repo for {site_name}.

Read the JSON file: {tasks_file}

For each task in the tasks array:

1. Create the page at the correct path:
{type_paths}

2. Use the existing site's HTML/CSS/JS patterns from index.html:
   - Copy the header structure (navigation, logo)
   - Copy the footer structure
   - Use CSS variables defined in css/styles.css
   - Include the same font loading and meta tags

3. Add proper SEO elements:
   - <title>[title] | {site_name}</title>
   - Meta description using primary_keyword naturally
   - Canonical URL under {base_url}
   - OpenGraph tags, plus article:published_time set to the task's publish_date
     and article:section set to the task's category when present

4. Write compelling content:
   - Use the title as the H1
   - Incorporate primary_keyword and secondary_keywords naturally
   - Write at least 500 words of helpful, original content
   - Include clear calls to action

5. Add internal links:
   - Link to homepage
   - Link to /#contact
   - Link to any pages mentioned in internal_links field
   - If there are tags, mention them

Important rules:
- Do NOT run any shell commands
- Do NOT delete any existing files
- Do NOT edit blog/index.html, the homepage blog cards, or sitemap.xml;
  those are regenerated automatically after you finish
- Keep the visual design consistent with the existing site

When done, output a summary listing:
- Files created
- Files updated
- Any errors encountered"""


def build_generation_prompt(site: SiteConfig, tasks_file: str = "automation/tasks.json") -> str:
    """Render the natural-language instructions for one generation run."""
    return _GENERATION_PROMPT.format(
        site_name=site.name,
        base_url=site.base_url,
        tasks_file=tasks_file,
        type_paths=_TYPE_PATHS,
    )
