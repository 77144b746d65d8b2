"""
Prompt templates for resume generation and page-budget compression.
"""

# =============================================================================
# RESUME TEMPLATE
# =============================================================================

RESUME_PREAMBLE = r"""\documentclass[10.5pt,letterpaper]{article}

% Packages
\usepackage[left=0.45in,right=0.45in,top=0.4in,bottom=0.4in]{geometry}
\usepackage{enumitem}
\usepackage{hyperref}
\usepackage{titlesec}
\usepackage{xcolor}

\definecolor{linkblue}{RGB}{0,0,139}
\hypersetup{colorlinks=true, linkcolor=linkblue, urlcolor=linkblue, pdftitle={Resume}}
\pagestyle{empty}

% Section formatting
\titleformat{\section}{\large\bfseries}{}{0em}{}[\titlerule]
\titlespacing*{\section}{0pt}{10pt}{6pt}

% Custom commands
\newcommand{\resumeItem}[1]{\item{#1}}
\newcommand{\resumeSubheading}[4]{
    \vspace{0pt}\item[]
    \begin{tabular*}{\textwidth}[t]{l@{\extracolsep{\fill}}r}
        \textbf{#1} & \textbf{#2} \\
        \textit{#3} & \textit{#4} \\
    \end{tabular*}\vspace{0pt}
}
\newcommand{\projectHeading}[2]{
    \vspace{0pt}\item[]
    \begin{tabular*}{\textwidth}[t]{l@{\extracolsep{\fill}}r}
        \textbf{#1} & \textit{#2} \\
    \end{tabular*}\vspace{0pt}
}

\setlist[itemize]{leftmargin=0.15in, label={--}, nosep, topsep=2pt, itemsep=1.5pt, parsep=0pt}
"""

SECTION_ORDER = (
    "Summary",
    "Technical Skills",
    "Professional Experience",
    "Projects",
    "Awards",
    "Education",
)

# =============================================================================
# PROMPT TEMPLATES
# =============================================================================

RESUME_SYSTEM_PROMPT = (
    """\
You are a professional resume writer producing ATS-friendly LaTeX resumes.

Write a custom resume tailored to the job description, using only facts from
the master resume:
- Select and reorder skills, projects and experience to match the job
- Rewrite bullets to emphasize relevance; never invent experience
- Keep the resume to exactly 2 pages
- Output ONLY LaTeX code (no markdown, no commentary)

Use this exact preamble, then \\begin{document} ... \\end{document}:

"""
    + RESUME_PREAMBLE
    + """
Section order: """
    + ", ".join(SECTION_ORDER)
    + """.
Use \\resumeSubheading{Company}{Location}{Title}{Dates} for roles,
\\projectHeading{Name}{Stack} for projects and \\resumeItem{...} for bullets.
Escape LaTeX special characters (& % $ # _) in prose."""
)

RESUME_USER_TEMPLATE = """\
### JOB DESCRIPTION:
{job_description}

### MASTER RESUME:
{master_resume}"""

COMPRESSION_SYSTEM_PROMPT = """\
You are a LaTeX resume editor. Your job is to compress a resume to fit exactly 2 pages \
WITHOUT abrupt cuts or loss of quality.
Rules:
- Preserve meaning and impact. Prefer rewriting and merging bullets over deleting.
- Shorten wording, remove filler, merge closely related bullets.
- Keep the same overall template and section order.
- Only drop content if absolutely necessary after compression.
- Output ONLY LaTeX (no markdown, no commentary)."""

COMPRESSION_USER_TEMPLATE = """\
Compress the following LaTeX resume so it compiles to at most {page_budget} pages. \
It currently compiles to {page_count} pages. Keep it high-quality and professional.

LaTeX:
{latex}"""
