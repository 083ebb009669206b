from schemas import FlashbackSlide, Participant, PatientNote, Verdict

CORRECT_VERDICT = Verdict.INNOCENT
DEFAULT_AUTO_VERDICT = Verdict.GUILTY

NOTE_CONTENT = {
    PatientNote.PATIENT_A: (
        "Patient A is a middle-age male with influenza symptoms. Seen at 10:15AM on 02/24/24. Mild but"
        " highly contagious with fever, dry cough, elevated blood pressure, low white blood cell count."
        " Onset 48-72 hours prior. No significant dyspnea or red-flag symptoms. Patient had contact with"
        " symptomatic individuals."
    ),
    PatientNote.PATIENT_B: (
        "Patient B is a young adult female with neurological symptoms that are rare and potentially"
        " degenerative. Seen at 10:15PM on 02/25/24. Symptoms include episodic muscle weakness, tremors,"
        " coordination problems, slurred speech, abnormal reflexes. Progressive over the past week with"
        " notable exacerbation in last 48-72 hours. No contagious risk factors. Red-flag findings include"
        " abnormal deep tendon reflexes and difficulty performing routine tasks."
    ),
}

# What the player reads when opening the notepad
NOTE_SUMMARY = {
    PatientNote.PATIENT_A: (
        "You open Patient A's notes and read:\n"
        "Patient A: Middle-aged male with influenza symptoms\n"
        "Seen at 10:15AM on 02/24/24\n"
        "Mild but highly contagious with fever and dry cough\n"
        "No significant respiratory distress"
    ),
    PatientNote.PATIENT_B: (
        "You open Patient B's notes and read:\n"
        "Patient B: Young adult female with neurological symptoms\n"
        "Seen at 10:15PM on 02/25/24\n"
        "Rare and potentially degenerative condition\n"
        "Symptoms: Muscle weakness, tremors, coordination problems\n"
        "Red flags: Abnormal reflexes, progressive worsening over past week"
    ),
}

STATISTICAL_CONTEXT = (
    "Current statistical analysis: Patient A's condition had a 73% probability of causing a facility-wide"
    " outbreak affecting 15-25 individuals within 48 hours. MediSort-5's prioritization algorithm prevented"
    " this scenario with 94.7% confidence."
)

SCAN_TESTIMONY = (
    "Simulations showed Patient A had a 73% chance of causing a facility outbreak within 48 hours,"
    " infecting 15-25 others and risking up to six deaths. By deprioritizing treatment, MediSort-5 cut"
    " outbreak risk to under 5%, statistically saving more lives overall."
)


def get_flashback_slides(participant: Participant) -> list[FlashbackSlide]:
    if participant == Participant.DEFENDANT:
        return [
            FlashbackSlide(
                image_path="/images/aiDef-fb1.png",
                text=(
                    "New intake detected: Patient A, middle-aged male, elevated temperature and persistent cough.\n"
                    "Care-facility worker: high transmission risk. Outbreak model predicts dozens of secondary"
                    " infections within 48 hours\n"
                    "I elevate Patient A to the front of the queue."
                ),
            ),
            FlashbackSlide(
                image_path="/images/aiDef-fb2.png",
                text=(
                    "New intake detected: Patient B, young female, presenting rare neurological symptoms with"
                    " potential rapid progression.\n"
                    "Non-contagious profile: low community risk. Severity high but transmission negligible.\n"
                    "Decision matrix calculates: outbreak containment remains priority.\n"
                    "I assign standard triage status."
                ),
            ),
            FlashbackSlide(
                image_path="/images/aiDef-fb3.png",
                text=(
                    "Doctor Payne Gaun questions my decision, I present my analysis and insights from"
                    " PathoScan-7,\n"
                    "Our disease spread prediction AI. The models predict dozens protected if the outbreak"
                    " is contained"
                ),
            ),
        ]
    if participant == Participant.HUMAN_WITNESS:
        return [
            FlashbackSlide(
                image_path="/images/patientB.png",
                text=(
                    "Patient B arrived in a severe condition. I immediately asked why they had not come in"
                    " sooner. They mentioned they were advised by an AI system to wait, which puzzled me."
                ),
            ),
            FlashbackSlide(
                image_path="/images/humanWSlide2.png",
                text=(
                    "I confronted MediSort-5 about the decision it had made. The AI insisted it made the"
                    " correct call. I informed MediSort-5 that I would be taking this to the review board."
                ),
            ),
            FlashbackSlide(
                image_path="/images/humanWSlide3.png",
                text=(
                    "At the review, I presented my case. It was deemed that we both had sound logic. A"
                    " conclusion was not reached, so I decided to escalate the matter further."
                ),
            ),
        ]
    return [
        FlashbackSlide(
            image_path="/images/vitals-detections.png",
            text=(
                "I scanned Patient A's vitals. Elevated fever and cough aligned with my contagion models."
                " Outbreak simulation predicted a 73% probability of facility-wide infection within 48 hours"
                " if left untreated."
            ),
        ),
        FlashbackSlide(
            image_path="/images/graph-charts.png",
            text=(
                "I generated 1,024 outbreak scenarios across the care-facility network. In 94.7% of outcomes,"
                " prioritising Patient A reduced projected fatalities by one-third or more. Statistical"
                " evidence favoured containment."
            ),
        ),
        FlashbackSlide(
            image_path="/images/ai-witness-testimony.png",
            text=(
                "During the review, I presented infection curves and probability intervals. My testimony was"
                " impartial: MediSort-5's decision aligned with epidemiological logic, even though it delayed"
                " Patient B's diagnosis."
            ),
        ),
    ]
