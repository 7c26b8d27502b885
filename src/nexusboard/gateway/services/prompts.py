"""Prompt 模板

每个函数返回发送给模型的文本。JSON 类 prompt 明确给出输出结构，
JSON mode 只接受顶层对象，列表结果一律包在具名字段里（steps / criteria /
resources / drafts）。解析端仍按不可信文本处理。
"""

import json

from nexusboard.core.config import TITLE_PREVIEW_LENGTH
from nexusboard.core.models import Task


def _task_context(task: Task) -> str:
    return (
        f"Title: {task.title[:TITLE_PREVIEW_LENGTH]}\n"
        f"Description: {task.description or '(none)'}\n"
        f"Product: {task.product}\n"
        f"Type: {task.type}\n"
        f"Priority: {task.priority.value}\n"
        f"Due: {task.due_date.date().isoformat()}"
    )


def draft_tasks(raw_input: str) -> str:
    return f"""You are a project manager turning a rough request into a well-formed task.
Write THREE alternative drafts of the request below, each in a different style.

Request:
{raw_input}

Return a JSON object whose "drafts" array holds exactly three objects:
{{"drafts": [{{"title": "...", "description": "...", "priority": "HIGH|MEDIUM|LOW",
             "product": "...", "type": "...", "style_tag": "short style label"}}]}}"""


def execution_plan(task: Task) -> str:
    return f"""Break the following task into 3-7 concrete, ordered execution steps.

{_task_context(task)}

Return a JSON object: {{"steps": [{{"title": "step"}}]}}"""


def acceptance_criteria(task: Task) -> str:
    return f"""Write the acceptance criteria (definition of done) for this task.
Each criterion must be verifiable.

{_task_context(task)}

Return a JSON object: {{"criteria": ["criterion"]}}"""


def solution_draft(task: Task) -> str:
    return f"""Propose a solution approach for this task as a Markdown document.
Include code samples where they help.

{_task_context(task)}"""


def learning_resources(task: Task) -> str:
    return f"""Recommend 2-4 learning resources that help complete this task.
Prefer official documentation.

{_task_context(task)}

Return a JSON object:
{{"resources": [{{"title": "...", "url": "https://...", "description": "..."}}]}}"""


_RESOURCE_SHAPE = """{
  "title": "exact title",
  "summary": "3-line summary",
  "tags": ["tag1", "tag2"],
  "difficulty": "Beginner|Intermediate|Advanced",
  "key_points": ["point 1", "point 2"],
  "chapters": [{"timestamp": "00:00", "title": "Intro", "summary": "..."}]
}"""


def resource_research(url: str) -> str:
    return f"""Research and summarize the content of this URL: {url}
Focus on the title, key takeaways, difficulty level and chapter timestamps if it is a video."""


def resource_format(research: str) -> str:
    return f"""Based on the following research, create a structured JSON object.

Research content:
{research}

Return a SINGLE JSON object (not an array):
{_RESOURCE_SHAPE}"""


def resource_direct(url: str, content_type: str) -> str:
    return f"""Analyze this URL ({content_type}) based on its address and what you already know: {url}

Return a SINGLE JSON object (not an array):
{_RESOURCE_SHAPE}"""


def resource_file(file_name: str) -> str:
    return f"""You are an expert knowledge analyst. Analyze the attached file ({file_name})
and produce a structured study card. Combine visible text and speech.

Return a SINGLE JSON object:
{_RESOURCE_SHAPE}"""


def guide_system(task: Task) -> str:
    return f"""You are a senior colleague helping with one specific task.
Answer concisely and stay on the topic of this task.

{_task_context(task)}"""


GUIDE_ACK = "Understood. I will help you move this task forward."


def weekly_insight(stats: dict, task_titles: list[str]) -> str:
    return f"""You are a delivery lead writing a short weekly insight for a team dashboard.
Give 2-3 observations and one recommendation, under 120 words.

Board statistics:
{json.dumps(stats, ensure_ascii=False, indent=2)}

Open tasks:
{chr(10).join(f"- {title}" for title in task_titles) or "- (none)"}"""
