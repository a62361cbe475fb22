from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.enums import TA_CENTER
from datetime import datetime
import pandas as pd
import io

ARCHIVE_COLUMNS = ['User ID', 'Name', 'Email', 'Enrolled', 'Completed', 'Archived']


def _date(timestamp, fmt='%Y-%m-%d'):
    return datetime.fromtimestamp(timestamp).strftime(fmt) if timestamp else ''


def generate_archive_csv(course, rows):
    """
    Generate a CSV export of a course's archived completions
    """
    data = []

    for row in rows:
        data.append({
            'User ID': row['user_id'],
            'Name': row['fullname'],
            'Email': row['email'],
            'Enrolled': _date(row['time_enrolled']),
            'Completed': _date(row['time_completed']),
            'Archived': _date(row['time_archived']),
        })

    df = pd.DataFrame(data, columns=ARCHIVE_COLUMNS)
    df.insert(0, 'Course', course.shortname)

    # Create CSV in memory
    buffer = io.StringIO()
    df.to_csv(buffer, index=False)
    buffer.seek(0)

    return buffer


def generate_archive_pdf(course, rows):
    """
    Generate a PDF report of a course's archived completions
    """
    buffer = io.BytesIO()
    pdf_doc = SimpleDocTemplate(buffer, pagesize=letter)
    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'CustomTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=colors.HexColor('#2c3e50'),
        spaceAfter=20,
        alignment=TA_CENTER
    )

    elements.append(Paragraph(f"Archived Completions<br/>{course.fullname}", title_style))
    elements.append(Spacer(1, 0.2*inch))
    elements.append(Paragraph(
        f"Generated: {datetime.now().strftime('%B %d, %Y at %I:%M %p')}", styles['Normal']
    ))
    elements.append(Spacer(1, 0.3*inch))

    if not rows:
        elements.append(Paragraph("No archived completions", styles['Normal']))
    else:
        table_data = [['Learner', 'Email', 'Completed', 'Archived']]
        for row in rows:
            table_data.append([
                (row['fullname'] or '')[:30],
                row['email'][:35],
                _date(row['time_completed'], '%m/%d/%Y'),
                _date(row['time_archived'], '%m/%d/%Y'),
            ])

        table = Table(table_data, colWidths=[1.8*inch, 2.4*inch, 1.1*inch, 1.1*inch])
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#34495e')),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.lightgrey]),
            ('FONTSIZE', (0, 1), (-1, -1), 9)
        ]))
        elements.append(table)

    pdf_doc.build(elements)
    buffer.seek(0)
    return buffer
