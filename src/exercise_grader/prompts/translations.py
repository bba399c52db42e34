"""
Translation strings for grading prompts and user-facing messages.

Add new languages by creating a new dictionary with the same structure.
"""

# ═══════════════════════════════════════════════════════════════════════════════
# VIETNAMESE TRANSLATIONS
# ═══════════════════════════════════════════════════════════════════════════════

TRANSLATIONS_VI = {
    "grading": {
        "role": (
            "Bạn là một giáo viên Toán học Việt Nam xuất sắc, am hiểu sâu sắc "
            "Chương trình Giáo dục Phổ thông 2018 (CT 2018)."
        ),
        "task": "Nhiệm vụ của bạn là chấm bài làm toán trong hình ảnh được cung cấp.",
        "steps_title": "Hãy thực hiện các bước sau:",
        "steps": [
            "Nhận diện đề bài toán.",
            "Phân tích từng bước giải của học sinh.",
            "Kiểm tra tính chính xác của tính toán, tính logic của lập luận và cách trình bày.",
            "Chấm điểm theo thang điểm 10.",
            "Đưa ra nhận xét phát triển phẩm chất và năng lực (tư duy, tính toán, trình bày).",
            "Nếu bài làm sai, hãy chỉ ra chỗ sai và cung cấp lời giải đúng chuẩn mực.",
        ],
        "requirements_title": "Yêu cầu:",
        "requirements": [
            "Giọng điệu sư phạm, khích lệ nhưng nghiêm khắc về tính chính xác.",
            "Chú trọng vào tư duy logic hơn là chỉ kết quả cuối cùng.",
            "Sử dụng Tiếng Việt chuẩn.",
        ],
        "json_instruction": "Trả lời DUY NHẤT bằng một đối tượng JSON theo đúng cấu trúc sau:",
    },
    "schema": {
        "problem_statement": "Đề bài toán được trích xuất từ hình ảnh.",
        "score": "Điểm số trên thang 10. Chấm chặt chẽ từng bước.",
        "summary": "Nhận xét tổng quan ngắn gọn về bài làm.",
        "step_content": "Mô tả bước làm của học sinh.",
        "step_correction": "Sửa lỗi nếu bước này sai (để trống nếu đúng).",
        "step_feedback": "Nhận xét chi tiết cho bước này.",
        "correct_solution": "Lời giải đúng hoàn chỉnh (Markdown) nếu học sinh làm sai hoặc chưa tối ưu.",
        "logic": "Đánh giá năng lực tư duy và lập luận toán học.",
        "calculation": "Đánh giá năng lực tính toán.",
        "presentation": "Đánh giá năng lực giao tiếp toán học (trình bày).",
        "tips": "Các mẹo hoặc lưu ý để học sinh làm tốt hơn lần sau.",
    },
    "messages": {
        "grading_failed": "Không thể chấm bài. Vui lòng thử lại.",
        "no_image_input": "Vui lòng chỉ chọn tệp hình ảnh (JPG, PNG, ...)",
        "paste_name_prefix": "Bai_lam",
        "reset_confirm": "Bạn có chắc chắn muốn xóa tất cả dữ liệu? Hành động này không thể hoàn tác.",
        "storage_full": "Bộ nhớ đã đầy. Không thể lưu lịch sử.",
        "storage_clear_failed": "Không thể xóa lịch sử đã lưu.",
        "points": "điểm",
    },
}


# ═══════════════════════════════════════════════════════════════════════════════
# ENGLISH TRANSLATIONS
# ═══════════════════════════════════════════════════════════════════════════════

TRANSLATIONS_EN = {
    "grading": {
        "role": "You are an experienced mathematics teacher.",
        "task": "Your task is to grade the handwritten or printed math work shown in the image.",
        "steps_title": "Follow these steps:",
        "steps": [
            "Identify the problem statement.",
            "Analyze each step of the student's solution.",
            "Check calculation accuracy, logical reasoning and presentation.",
            "Grade on a scale of 10.",
            "Assess competencies (reasoning, calculation, presentation).",
            "If the work is wrong, point out the errors and give a correct reference solution.",
        ],
        "requirements_title": "Requirements:",
        "requirements": [
            "Pedagogical, encouraging tone, but strict about correctness.",
            "Value the reasoning over the final answer alone.",
            "Write in clear English.",
        ],
        "json_instruction": "Answer ONLY with a JSON object with exactly this structure:",
    },
    "schema": {
        "problem_statement": "Problem statement extracted from the image.",
        "score": "Score out of 10. Grade each step strictly.",
        "summary": "Short overall comment on the work.",
        "step_content": "Description of the student's step.",
        "step_correction": "Correction if this step is wrong (empty if correct).",
        "step_feedback": "Detailed feedback on this step.",
        "correct_solution": "Complete correct solution (Markdown) if the work is wrong or not optimal.",
        "logic": "Assessment of mathematical reasoning.",
        "calculation": "Assessment of calculation accuracy.",
        "presentation": "Assessment of presentation and notation.",
        "tips": "Tips to do better next time.",
    },
    "messages": {
        "grading_failed": "Could not grade this sheet. Please try again.",
        "no_image_input": "Please select image files only (JPG, PNG, ...)",
        "paste_name_prefix": "Sheet",
        "reset_confirm": "Delete all data? This action cannot be undone.",
        "storage_full": "Storage is full. History could not be saved.",
        "storage_clear_failed": "Saved history could not be deleted.",
        "points": "points",
    },
}


# ═══════════════════════════════════════════════════════════════════════════════
# FRENCH TRANSLATIONS
# ═══════════════════════════════════════════════════════════════════════════════

TRANSLATIONS_FR = {
    "grading": {
        "role": "Tu es un professeur de mathématiques expérimenté.",
        "task": "Ta mission est de corriger le travail de mathématiques visible sur l'image.",
        "steps_title": "Procède ainsi:",
        "steps": [
            "Identifie l'énoncé du problème.",
            "Analyse chaque étape de la résolution de l'élève.",
            "Vérifie l'exactitude des calculs, la logique du raisonnement et la présentation.",
            "Note sur 10.",
            "Évalue les compétences (raisonnement, calcul, présentation).",
            "Si le travail est faux, indique les erreurs et donne une solution correcte.",
        ],
        "requirements_title": "Exigences:",
        "requirements": [
            "Ton pédagogique et encourageant, mais rigoureux sur l'exactitude.",
            "Privilégie le raisonnement plutôt que le seul résultat final.",
            "Rédige en français.",
        ],
        "json_instruction": "Réponds UNIQUEMENT avec un objet JSON ayant exactement cette structure:",
    },
    "schema": {
        "problem_statement": "Énoncé du problème extrait de l'image.",
        "score": "Note sur 10. Noter chaque étape rigoureusement.",
        "summary": "Court commentaire général sur la copie.",
        "step_content": "Description de l'étape de l'élève.",
        "step_correction": "Correction si l'étape est fausse (vide si correcte).",
        "step_feedback": "Commentaire détaillé sur cette étape.",
        "correct_solution": "Solution correcte complète (Markdown) si le travail est faux ou perfectible.",
        "logic": "Évaluation du raisonnement mathématique.",
        "calculation": "Évaluation de l'exactitude des calculs.",
        "presentation": "Évaluation de la présentation et des notations.",
        "tips": "Conseils pour mieux faire la prochaine fois.",
    },
    "messages": {
        "grading_failed": "Impossible de corriger cette copie. Veuillez réessayer.",
        "no_image_input": "Veuillez sélectionner uniquement des images (JPG, PNG, ...)",
        "paste_name_prefix": "Copie",
        "reset_confirm": "Supprimer toutes les données ? Cette action est irréversible.",
        "storage_full": "Stockage plein. L'historique n'a pas pu être enregistré.",
        "storage_clear_failed": "L'historique enregistré n'a pas pu être supprimé.",
        "points": "points",
    },
}


TRANSLATIONS = {
    "vi": TRANSLATIONS_VI,
    "en": TRANSLATIONS_EN,
    "fr": TRANSLATIONS_FR,
}


def get_translations(language: str) -> dict:
    """
    Get translations for a language.

    Args:
        language: Language code (vi, en, fr)

    Returns:
        Translation dictionary

    Raises:
        ValueError: If language is not supported
    """
    if language not in TRANSLATIONS:
        available = ", ".join(TRANSLATIONS.keys())
        raise ValueError(f"Unsupported language: {language}. Available: {available}")
    return TRANSLATIONS[language]


def get_message(key: str, language: str) -> str:
    """Get one user-facing message."""
    return get_translations(language)["messages"][key]
